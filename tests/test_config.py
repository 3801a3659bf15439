from config import Settings


def test_defaults(monkeypatch):
    for name in ("DATABASE_URL", "JWT_SECRET", "CORS_ORIGINS", "SEED_PRODUCTS", "PORT"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.database_url == "sqlite:///./ecommerce.db"
    assert settings.access_token_expire_minutes == 10080
    assert settings.cors_origins == ["*"]
    assert settings.seed_products is True
    assert settings.port == 4000


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:////tmp/shop.db")
    monkeypatch.setenv("DB_TIMEOUT", "2.5")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("SEED_PRODUCTS", "no")
    monkeypatch.setenv("BCRYPT_ROUNDS", "6")

    settings = Settings.from_env()

    assert settings.database_url == "sqlite:////tmp/shop.db"
    assert settings.db_timeout == 2.5
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
    assert settings.seed_products is False
    assert settings.bcrypt_rounds == 6
