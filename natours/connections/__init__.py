from natours.connections.mongo import close_mongo, init_mongo

__all__ = ["init_mongo", "close_mongo"]
