from gis_backend.config.app_config import load_app_config
from gis_backend.db import Base, build_engine

import gis_backend.models  # noqa: F401  (register tables)


def init_db(engine=None):
    engine = engine or build_engine(load_app_config().database_url())
    Base.metadata.create_all(bind=engine)
    return engine


if __name__ == "__main__":
    init_db()
