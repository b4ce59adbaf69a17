"""
StylesAPIConfig tests: environment loading, validation, connection strings.
"""

import pytest

from styles_api.config import StylesAPIConfig, get_styles_config, reset_styles_config
from styles_api.repository import PostgreSQLStyleRepository, get_style_repository

_ENV = (
    "STYLES_STORAGE", "STYLES_ENABLED_FORMATS", "STYLES_DEFAULT_FORMAT", "STYLES_BASE_URL",
    "STYLES_MAX_BODY_BYTES", "POSTGIS_HOST", "POSTGIS_DATABASE", "POSTGIS_USER", "POSTGIS_PASSWORD",
    "DB_ADMIN_MANAGED_IDENTITY_CLIENT_ID", "DB_ADMIN_MANAGED_IDENTITY_NAME", "WEBSITE_SITE_NAME",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestConfigFromEnvironment:

    def test_defaults(self, clean_env):
        config = StylesAPIConfig()
        assert config.storage_backend == "memory"
        assert config.default_format == "cartosym"
        assert config.enabled_formats == []
        assert config.max_body_bytes == 1024 * 1024

    def test_enabled_formats_list(self, clean_env):
        clean_env.setenv("STYLES_ENABLED_FORMATS", " SLD, mapbox ,,")
        assert StylesAPIConfig().enabled_formats == ["sld", "mapbox"]

    def test_unknown_backend(self, clean_env):
        clean_env.setenv("STYLES_STORAGE", "mongo")
        with pytest.raises(ValueError, match="STYLES_STORAGE"):
            StylesAPIConfig()

    def test_backend_name_normalized(self, clean_env):
        clean_env.setenv("STYLES_STORAGE", " Postgres ")
        clean_env.setenv("POSTGIS_HOST", "db")
        clean_env.setenv("POSTGIS_DATABASE", "geo")
        clean_env.setenv("POSTGIS_USER", "styles")
        config = StylesAPIConfig()
        assert config.storage_backend == "postgres"
        assert isinstance(get_style_repository(config), PostgreSQLStyleRepository)

    def test_default_format_normalized(self, clean_env):
        clean_env.setenv("STYLES_DEFAULT_FORMAT", "SLD")
        assert StylesAPIConfig().default_format == "sld"

    def test_invalid_numeric_setting(self, clean_env):
        clean_env.setenv("STYLES_MAX_BODY_BYTES", "0")
        with pytest.raises(ValueError, match="max_body_bytes"):
            StylesAPIConfig()

    def test_postgres_requires_connection_settings(self, clean_env):
        clean_env.setenv("STYLES_STORAGE", "postgres")
        clean_env.setenv("POSTGIS_HOST", "db")
        with pytest.raises(ValueError, match="POSTGIS_DATABASE"):
            StylesAPIConfig()

    def test_singleton(self, clean_env):
        assert get_styles_config() is get_styles_config()
        first = get_styles_config()
        reset_styles_config()
        assert get_styles_config() is not first


class TestBaseUrl:

    def test_configured(self, clean_env):
        config = StylesAPIConfig(styles_base_url="https://maps.example.org/")
        assert config.get_base_url("http://other/api/styles") == "https://maps.example.org"

    def test_from_request(self, clean_env):
        config = StylesAPIConfig()
        assert config.get_base_url("https://fn.azurewebsites.net/api/styles/roads") == "https://fn.azurewebsites.net"

    def test_fallback(self, clean_env):
        assert StylesAPIConfig().get_base_url(None) == "http://localhost:7071"


class TestConnectionString:

    def test_password_auth(self, clean_env):
        config = StylesAPIConfig(
            storage_backend="postgres", postgis_host="db", postgis_database="geo",
            postgis_user="styles", postgis_password="pw"
        )
        dsn = config.get_connection_string()
        assert "user=styles" in dsn
        assert "password=pw" in dsn
        assert "sslmode=require" in dsn

    def test_no_credentials(self, clean_env):
        config = StylesAPIConfig(
            storage_backend="postgres", postgis_host="db", postgis_database="geo", postgis_user="styles"
        )
        with pytest.raises(ValueError, match="No database credentials"):
            config.get_connection_string()

    def test_user_assigned_identity(self, clean_env):
        config = StylesAPIConfig(
            storage_backend="postgres", postgis_host="db", postgis_database="geo", postgis_user="styles",
            managed_identity_client_id="client-id", managed_identity_name="styles-mi"
        )
        requested = []

        def fake_token(client_id):
            requested.append(client_id)
            return "aad-token"

        clean_env.setattr(StylesAPIConfig, "_managed_identity_token", staticmethod(fake_token))
        dsn = config.get_connection_string()
        assert requested == ["client-id"]
        assert "user=styles-mi" in dsn
        assert "password=aad-token" in dsn

    def test_system_assigned_identity(self, clean_env):
        config = StylesAPIConfig(
            storage_backend="postgres", postgis_host="db", postgis_database="geo", postgis_user="styles",
            azure_website_name="styles-app", postgis_password="ignored"
        )
        clean_env.setattr(StylesAPIConfig, "_managed_identity_token", staticmethod(lambda client_id: "aad-token"))
        dsn = config.get_connection_string()
        assert "user=styles-app" in dsn
        assert "password=aad-token" in dsn

    def test_qualified_table(self, clean_env):
        assert StylesAPIConfig(styles_schema="geo", styles_table="styles").qualified_table == "geo.styles"
