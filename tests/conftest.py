"""
Shared fixtures.

The KDF runs once per field operation, so tests use the lowest PBKDF2
iteration count the codec accepts.
"""

import pytest

from securefields.core.config import SecureConfig, SecurityConfig
from securefields.core.crypto.envelope import EnvelopeCodec
from securefields.core.crypto.kdf import MIN_PBKDF2_ITERATIONS, KdfAlgorithm
from securefields.core.engine import FieldEncryptionEngine
from securefields.fields.registry import FieldRegistry

PASSPHRASE = "correct horse battery staple"


@pytest.fixture(autouse=True)
def _reset_config_singleton():
    SecureConfig.reset_instance()
    yield
    SecureConfig.reset_instance()


@pytest.fixture
def fast_config() -> SecureConfig:
    return SecureConfig(security=SecurityConfig(kdf_iterations=MIN_PBKDF2_ITERATIONS))


@pytest.fixture
def codec() -> EnvelopeCodec:
    return EnvelopeCodec(kdf=KdfAlgorithm.PBKDF2_SHA256, cost=MIN_PBKDF2_ITERATIONS)


@pytest.fixture
def registry() -> FieldRegistry:
    return FieldRegistry()


@pytest.fixture
def engine(fast_config, registry) -> FieldEncryptionEngine:
    return FieldEncryptionEngine(PASSPHRASE, config=fast_config, registry=registry)


@pytest.fixture
def other_engine(fast_config, registry) -> FieldEncryptionEngine:
    return FieldEncryptionEngine("a different passphrase", config=fast_config, registry=registry)
