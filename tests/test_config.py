import pytest

from app.core.config import Settings, parse_list_from_env, settings


class TestParseListFromEnv:
    """Tests pour la fonction utilitaire parse_list_from_env."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (["val1", "val2"], ["val1", "val2"]),
            ("val1,val2,val3", ["val1", "val2", "val3"]),
            ("  val1 , val2 ,  ", ["val1", "val2"]),
            ('["val1", "val2"]', ["val1", "val2"]),
            ('["a,b","c"]', ["a,b", "c"]),
            ("single_value", ["single_value"]),
            ("", []),
            ("   ", []),
        ],
    )
    def test_supported_formats(self, value, expected):
        assert parse_list_from_env(value, "test_field") == expected

    def test_parse_origins(self):
        """Cas d'usage réel: origines CORS de l'application web."""
        origins = "http://localhost:5173,https://app.exemple.ma"
        assert parse_list_from_env(origins, "ALLOWED_ORIGINS") == [
            "http://localhost:5173",
            "https://app.exemple.ma",
        ]

    def test_invalid_json_format(self):
        with pytest.raises(ValueError, match="Format JSON invalide pour test_field"):
            parse_list_from_env('["val1", "val2",]', "test_field")

    def test_invalid_type(self):
        with pytest.raises(ValueError, match="Valeur invalide pour test_field"):
            parse_list_from_env(123, "test_field")  # type: ignore


class TestConfigValidators:
    """Tests pour les validateurs de configuration."""

    def test_allowed_origins_validator(self):
        result = Settings.assemble_cors_origins("http://localhost:5173,https://app.exemple.ma")
        assert result == ["http://localhost:5173", "https://app.exemple.ma"]

    def test_trusted_hosts_validator(self):
        result = Settings.assemble_trusted_hosts("localhost,*.exemple.ma")
        assert result == ["localhost", "*.exemple.ma"]

    def test_short_jwt_secret_is_rejected(self):
        with pytest.raises(ValueError, match="JWT_SECRET trop court"):
            Settings.validate_jwt_secret("trop-court")

    def test_jwt_secret_is_accepted(self):
        secret = "x" * 32
        assert Settings.validate_jwt_secret(secret) == secret


class TestBusinessDefaults:
    def test_api_prefix(self):
        assert settings.get_api_prefix() == "/api/v1"
        assert settings.get_api_prefix("v2") == "/api/v2"

    def test_prospect_rules(self):
        assert settings.PROSPECT_REINJECT_DELAY_HOURS == 24
        assert settings.CLEANING_RDV_GRACE_DAYS == 7
        assert settings.CLEANING_STALE_INJECTION_DAYS == 3
        assert settings.DEFAULT_COUNTRY_CODE == "212"
        assert settings.PAYROLL_PERIOD_START_DAY == 19

    def test_test_environment(self):
        assert settings.ENVIRONMENT == "test"
        assert settings.CACHE_ENABLED is False
        assert settings.CLEANING_SCHEDULER_ENABLED is False
