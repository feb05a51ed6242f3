import os

POSTGRES_SCHEME = 'postgres://'
POSTGRESQL_SCHEME = 'postgresql://'


def _normalize_db_uri(db_url):
    if db_url and db_url.startswith(POSTGRES_SCHEME):
        return db_url.replace(POSTGRES_SCHEME, POSTGRESQL_SCHEME, 1)
    return db_url


def load_config(app, overrides):
    if os.path.exists(os.path.join('./App', 'custom_config.py')):
        app.config.from_object('App.custom_config')
    else:
        app.config.from_object('App.default_config')

    app.config.from_prefixed_env()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['JSON_SORT_KEYS'] = False

    db_url = (
        os.environ.get('DATABASE_URI') or
        os.environ.get('SQLALCHEMY_DATABASE_URI') or
        os.environ.get('DATABASE_URI_SQLITE') or
        app.config.get('SQLALCHEMY_DATABASE_URI')
    )
    if db_url:
        app.config['SQLALCHEMY_DATABASE_URI'] = _normalize_db_uri(db_url)
    else:
        app.logger.warning('No database URI configured', extra={'event': 'config_missing_db_uri'})

    for key in ('ENV', 'LOG_LEVEL', 'SERVICE_NAME'):
        if os.environ.get(key):
            app.config[key] = os.environ[key]

    max_groups = os.environ.get('MAX_GROUPS_PER_ACTIVITY')
    if max_groups:
        try:
            app.config['MAX_GROUPS_PER_ACTIVITY'] = int(max_groups)
        except ValueError:
            app.logger.warning(
                'Ignoring non-numeric MAX_GROUPS_PER_ACTIVITY',
                extra={'event': 'config_invalid_value', 'value': max_groups},
            )

    for key in overrides:
        app.config[key] = overrides[key]

    # Overrides may have replaced the URI with a postgres:// one
    final_db_uri = _normalize_db_uri(app.config.get('SQLALCHEMY_DATABASE_URI') or '')
    app.config['SQLALCHEMY_DATABASE_URI'] = final_db_uri

    engine_options = app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', {})
    if final_db_uri.startswith('sqlite'):
        # SQLite doesn't pool the same way; these options break in-memory test databases
        for key in ('pool_pre_ping', 'pool_recycle', 'pool_timeout'):
            engine_options.pop(key, None)
    else:
        engine_options.setdefault('pool_pre_ping', True)
        engine_options.setdefault('pool_recycle', 280)
        engine_options.setdefault('pool_timeout', 30)
