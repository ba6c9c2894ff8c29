"""Utility script to run Alembic migrations programmatically before app start (optional).

Usage:
    python run_migrations.py

This can be invoked in container entrypoint before launching uvicorn.
"""
from alembic.config import Config
from alembic import command
import os

BASE_DIR = os.path.dirname(__file__)
ALEMBIC_INI = os.path.join(BASE_DIR, 'alembic.ini')


def run():
    cfg = Config(ALEMBIC_INI)
    # env.py resolves DB_URL / DATABASE_URL and converts async driver URLs
    cfg.set_main_option('script_location', os.path.join(BASE_DIR, 'alembic'))
    command.upgrade(cfg, 'head')


if __name__ == '__main__':
    run()
