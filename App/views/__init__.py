from .index import index_views

# All blueprints to be registered
views = [
    index_views,       # Root route and health check
]
