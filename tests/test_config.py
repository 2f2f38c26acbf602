"""Environment-driven settings."""
import pytest

from miniurl import config


@pytest.fixture
def clean_env(monkeypatch):
    monkeypatch.setattr(config, 'load_dotenv', lambda *args, **kwargs: False)
    for name in ('ENVIRONMENT', 'JWT_SECRET', 'DATABASE_URL', 'BASE_URL',
                 'FRONTEND_BASE_URL', 'CORS_ALLOWED_ORIGINS', 'ACCESS_TOKEN_EXPIRE_MINUTES'):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_secret_required(clean_env):
    with pytest.raises(RuntimeError, match='JWT_SECRET'):
        config.load_settings()


def test_dev_defaults(clean_env):
    clean_env.setenv('JWT_SECRET', 's3cret')
    settings = config.load_settings()
    assert settings.environment == 'dev'
    assert settings.database_url.startswith('sqlite:///')
    assert settings.base_url is None
    assert settings.frontend_base_url == 'http://localhost:5173'
    assert settings.cors_allowed_origins == config.DEFAULT_CORS_ORIGINS
    assert settings.access_token_expire_minutes == 60


def test_prod_requires_database_url(clean_env):
    clean_env.setenv('JWT_SECRET', 's3cret')
    clean_env.setenv('ENVIRONMENT', 'prod')
    with pytest.raises(RuntimeError, match='DATABASE_URL'):
        config.load_settings()


def test_overrides(clean_env):
    clean_env.setenv('JWT_SECRET', 's3cret')
    clean_env.setenv('BASE_URL', 'https://sho.rt/')
    clean_env.setenv('FRONTEND_BASE_URL', 'https://app.sho.rt/')
    clean_env.setenv('CORS_ALLOWED_ORIGINS', 'https://a.example, https://b.example ,')
    settings = config.load_settings()
    assert settings.base_url == 'https://sho.rt'
    assert settings.frontend_base_url == 'https://app.sho.rt'
    assert settings.cors_allowed_origins == ('https://a.example', 'https://b.example')
