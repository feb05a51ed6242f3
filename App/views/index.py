from flask import Blueprint, jsonify

from App.utils.performance_monitor import get_performance_summary

index_views = Blueprint('index_views', __name__)


@index_views.route('/', methods=['GET'])
def index_page():
    return jsonify({'service': 'classroom-group-assignment', 'api': '/api/v2'})


@index_views.route('/health', methods=['GET'])
def health_check():
    return jsonify({'status': 'healthy'})


@index_views.route('/metrics', methods=['GET'])
def metrics_summary():
    return jsonify(get_performance_summary())
