"""
TechGear Catalog Backend — Settings Tests
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.config import Settings


class TestSettings:

    def test_cors_origins_list_skips_blanks(self):
        config = Settings(cors_origins=" https://a.io, ,https://b.io ,")
        assert config.cors_origins_list == ["https://a.io", "https://b.io"]

    def test_log_level_is_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(PydanticValidationError):
            Settings(log_level="chatty")

    def test_rate_limits_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            Settings(rate_limit_auth_requests=0)

    def test_missing_required_values_are_reported_together(self):
        config = Settings(database_url="", jwt_secret="")
        with pytest.raises(ValueError) as exc_info:
            config.validate_required_for_production()
        assert "DATABASE_URL" in str(exc_info.value)
        assert "JWT_SECRET" in str(exc_info.value)

    def test_complete_configuration_passes(self):
        config = Settings(database_url="postgresql+asyncpg://u:p@db/catalog", jwt_secret="s")
        config.validate_required_for_production()
