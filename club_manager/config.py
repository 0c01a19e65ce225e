"""Runtime configuration read from the environment."""

import os


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-key-change-in-production-12345')
    DATABASE = os.environ.get('DATABASE', 'club.db')

    TOKEN_ALGORITHM = 'HS256'
    TOKEN_TTL_SECONDS = int(os.environ.get('TOKEN_TTL_SECONDS', 24 * 60 * 60))

    ALLOWED_ORIGIN = os.environ.get('ALLOWED_ORIGIN', '*')
    SEED_DEMO_DATA = _env_flag('SEED_DEMO_DATA', True)

    JSON_SORT_KEYS = False
