"""
Tests for Core Functionality
Settings, YAML config, startup validation and the organization middleware
"""
import jwt
import pytest
from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient

from callboard.core.config import ConfigManager, Settings
from callboard.core.tenant_middleware import OrganizationMiddleware, get_current_organization
from callboard.core.validation import ConfigValidator, validate_config_on_startup


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    @pytest.mark.asyncio
    async def test_health_endpoint_returns_healthy(self):
        from callboard.main import app

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_root_endpoint(self):
        from callboard.main import app

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/")

        assert response.status_code == 200
        assert "Callboard" in response.json()["message"]


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("VOICE_API_BASE_URL", raising=False)
        settings = Settings(_env_file=None)

        assert settings.api_prefix == "/api/v1"
        assert settings.voice_api_base_url == "https://api.vapi.ai"
        assert settings.default_plan_id == "employee_1"
        assert settings.webhook_secret is None

    def test_comma_separated_cors_origins(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
        settings = Settings(_env_file=None)

        assert settings.cors_origins == ["http://a.test", "http://b.test"]

    def test_json_cors_origins(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", '["http://a.test"]')
        assert Settings(_env_file=None).cors_origins == ["http://a.test"]


class TestConfigManager:
    """YAML loading with environment overlays"""

    @pytest.fixture
    def config_dir(self, tmp_path):
        (tmp_path / "default.yaml").write_text(
            "billing:\n"
            "  default_plan: employee_1\n"
            "  webhook:\n"
            "    secret: ${TEST_WEBHOOK_SECRET}\n"
            "    retries: 3\n"
        )
        (tmp_path / "production.yaml").write_text("billing:\n  webhook:\n    retries: 5\n")
        return tmp_path

    def test_dot_notation(self, config_dir):
        config = ConfigManager(env="development", config_dir=config_dir)

        assert config.get("billing.default_plan") == "employee_1"
        assert config.get("billing.missing", "fallback") == "fallback"

    def test_environment_overlay_is_merged(self, config_dir):
        config = ConfigManager(env="production", config_dir=config_dir)

        assert config.get("billing.webhook.retries") == 5
        assert config.get("billing.default_plan") == "employee_1"

    def test_env_var_substitution(self, config_dir, monkeypatch):
        monkeypatch.setenv("TEST_WEBHOOK_SECRET", "whsec_123")
        config = ConfigManager(env="development", config_dir=config_dir)

        assert config.get("billing.webhook.secret") == "whsec_123"

    def test_unset_env_var_is_left_as_is(self, config_dir, monkeypatch):
        monkeypatch.delenv("TEST_WEBHOOK_SECRET", raising=False)
        config = ConfigManager(env="development", config_dir=config_dir)

        assert config.get("billing.webhook.secret") == "${TEST_WEBHOOK_SECRET}"

    def test_missing_directory(self, tmp_path):
        assert ConfigManager(config_dir=tmp_path / "nope").get("billing") is None


class TestConfigValidator:
    """Tests for startup configuration validation."""

    @pytest.fixture
    def unconfigured(self, monkeypatch):
        for var in ("SUPABASE_URL", "SUPABASE_SERVICE_KEY", "VOICE_API_BASE_URL", "WEBHOOK_SECRET"):
            monkeypatch.delenv(var, raising=False)

    def test_configured_environment_is_valid(self):
        all_valid, results = ConfigValidator(production=True).validate_all()

        assert all_valid is True
        assert {r.setting for r in results} >= {"SUPABASE_URL", "SUPABASE_SERVICE_KEY", "VOICE_API_BASE_URL"}

    def test_missing_vars_warn_in_development(self, unconfigured):
        all_valid, results = ConfigValidator().validate_all()

        assert all_valid is True
        assert all(r.message.startswith("WARNING") for r in results)

    def test_missing_vars_fail_in_production(self, unconfigured):
        validator = ConfigValidator(production=True)
        all_valid, _ = validator.validate_all()

        assert all_valid is False
        summary = validator.get_error_summary()
        assert "SUPABASE_URL" in summary
        # Optional settings never fail validation
        assert "WEBHOOK_SECRET" not in summary

    def test_strict_turns_warnings_into_errors(self, unconfigured):
        all_valid, _ = ConfigValidator(strict=True).validate_all()
        assert all_valid is False

    def test_startup_raises_on_errors(self, unconfigured):
        with pytest.raises(RuntimeError, match="Configuration errors"):
            validate_config_on_startup(production=True)

    def test_startup_passes_when_configured(self):
        validate_config_on_startup(strict=True, production=True)


def _middleware_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(OrganizationMiddleware)

    @app.get("/whoami")
    async def whoami(organization_id=Depends(get_current_organization)):
        return {"organization_id": organization_id}

    @app.get("/health")
    async def health(organization_id=Depends(get_current_organization)):
        return {"organization_id": organization_id}

    return app


class TestOrganizationMiddleware:
    """organization_id extraction from bearer tokens"""

    async def _get(self, path, token=None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        transport = ASGITransport(app=_middleware_app())
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get(path, headers=headers)
        return response.json()["organization_id"]

    @pytest.mark.asyncio
    async def test_user_metadata_claim(self):
        token = jwt.encode({"sub": "user_1", "user_metadata": {"organization_id": "org_5"}}, "secret", algorithm="HS256")
        assert await self._get("/whoami", token) == "org_5"

    @pytest.mark.asyncio
    async def test_top_level_claim(self):
        token = jwt.encode({"sub": "user_1", "organization_id": "org_7"}, "secret", algorithm="HS256")
        assert await self._get("/whoami", token) == "org_7"

    @pytest.mark.asyncio
    async def test_malformed_token(self):
        assert await self._get("/whoami", "not-a-jwt") is None

    @pytest.mark.asyncio
    async def test_no_token(self):
        assert await self._get("/whoami") is None

    @pytest.mark.asyncio
    async def test_public_paths_are_skipped(self):
        token = jwt.encode({"organization_id": "org_7"}, "secret", algorithm="HS256")
        assert await self._get("/health", token) is None
