from lbk_points.db.session import Base, Database

__all__ = ["Base", "Database"]
