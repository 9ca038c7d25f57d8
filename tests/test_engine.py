"""
Tests for the field encryption engine.

These tests verify that:
1. Confidential string fields round-trip through encrypt/decrypt
2. Configuration mistakes fail before any field is mutated
3. Cipher and decoding failures are wrapped and chained
4. Partial mutation on mid-object failure is preserved, not rolled back
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Annotated

import pytest

from securefields.core.config import SecureConfig, SecurityConfig
from securefields.core.crypto.envelope import CipherError, EnvelopeFormatError
from securefields.core.engine import EncryptionProvider, FieldEncryptionEngine
from securefields.core.errors import (
    AccessorInvocationError,
    AccessorResolutionError,
    CryptoOperationError,
    EncryptionProviderError,
    FieldTypeError,
    InitializationError,
    SerializationError,
)
from securefields.fields import CONFIDENTIAL, ConfidentialStr, confidential
from securefields.models import ConfigurationItem, SecureConfigurationItem

PASSPHRASE = "correct horse battery staple"


# =============================================================================
# TARGET TYPES
# =============================================================================

class Account:
    """Plain class with one confidential and one public field."""

    login: str
    token: ConfidentialStr

    def __init__(self, login: str, token: str) -> None:
        self.login = login
        self.token = token

    def getToken(self) -> str:
        return self.token

    def setToken(self, token: str) -> None:
        self.token = token


class PremiumAccount(Account):
    """Subclass declaring no fields of its own."""

    pass


class ExtendedAccount(Account):
    """Subclass declaring one confidential field of its own."""

    recovery_code: Annotated[str, CONFIDENTIAL]

    def __init__(self, login: str, token: str, recovery_code: str) -> None:
        super().__init__(login, token)
        self.recovery_code = recovery_code

    def getRecovery_code(self) -> str:
        return self.recovery_code

    def setRecovery_code(self, recovery_code: str) -> None:
        self.recovery_code = recovery_code


@dataclass
class ApiCredential:
    """Dataclass using the confidential() field spelling."""

    client_id: str = ""
    secret: str = confidential(default="")

    def getSecret(self) -> str:
        return self.secret

    def setSecret(self, secret: str) -> None:
        self.secret = secret


class NumberedItem:
    """A confidential int field after a valid confidential str field."""

    label: ConfidentialStr
    number: Annotated[int, CONFIDENTIAL]

    def __init__(self) -> None:
        self.label = "label"
        self.number = 42

    def getLabel(self) -> str:
        return self.label

    def setLabel(self, label: str) -> None:
        self.label = label

    def getNumber(self) -> int:
        return self.number

    def setNumber(self, number: int) -> None:
        self.number = number


class MissingSetter:
    """Second confidential field has no setter."""

    first: ConfidentialStr
    second: ConfidentialStr

    def __init__(self) -> None:
        self.first = "one"
        self.second = "two"

    def getFirst(self) -> str:
        return self.first

    def setFirst(self, first: str) -> None:
        self.first = first

    def getSecond(self) -> str:
        return self.second


class MissingGetter:
    hidden: ConfidentialStr

    def __init__(self) -> None:
        self.hidden = "value"

    def setHidden(self, hidden: str) -> None:
        self.hidden = hidden


class BrokenSetter:
    value: ConfidentialStr

    def __init__(self) -> None:
        self.value = "value"

    def getValue(self) -> str:
        return self.value

    def setValue(self, value: str) -> None:
        raise RuntimeError("read-only")


class NoneGetter:
    value: ConfidentialStr

    def getValue(self) -> str:
        return None

    def setValue(self, value: str) -> None:
        pass


class OrderRecorder:
    """Records the order in which setters are invoked."""

    alpha: ConfidentialStr
    beta: ConfidentialStr
    gamma: ConfidentialStr

    def __init__(self) -> None:
        self.alpha, self.beta, self.gamma = "a", "b", "c"
        self.calls = []

    def getAlpha(self) -> str:
        return self.alpha

    def setAlpha(self, alpha: str) -> None:
        self.calls.append("alpha")
        self.alpha = alpha

    def getBeta(self) -> str:
        return self.beta

    def setBeta(self, beta: str) -> None:
        self.calls.append("beta")
        self.beta = beta

    def getGamma(self) -> str:
        return self.gamma

    def setGamma(self, gamma: str) -> None:
        self.calls.append("gamma")
        self.gamma = gamma


# =============================================================================
# CONSTRUCTION
# =============================================================================

class TestConstruction:
    """Engine construction contract."""

    @pytest.mark.parametrize("passphrase", ["", None, b"bytes", 1234])
    def test_rejects_empty_or_non_string_passphrase(self, passphrase, fast_config):
        with pytest.raises(InitializationError, match="non-empty passphrase"):
            FieldEncryptionEngine(passphrase, config=fast_config)

    def test_codec_construction_failure_is_wrapped(self):
        config = SecureConfig(security=SecurityConfig(
            kdf_algorithm="argon2id",
            argon2_memory_cost=8,
            argon2_parallelism=4,
        ))

        with pytest.raises(InitializationError) as exc_info:
            FieldEncryptionEngine(PASSPHRASE, config=config)

        assert isinstance(exc_info.value.cause, CipherError)

    def test_uses_global_configuration_by_default(self, monkeypatch):
        monkeypatch.setenv("SECUREFIELDS_SECURITY__KDF_ITERATIONS", "20000")

        engine = FieldEncryptionEngine(PASSPHRASE)

        assert "cost=20000" in repr(engine.codec)

    def test_invalid_environment_configuration_is_wrapped(self, monkeypatch):
        monkeypatch.setenv("SECUREFIELDS_SECURITY__KDF_ALGORITHM", "rot13")

        with pytest.raises(InitializationError):
            FieldEncryptionEngine(PASSPHRASE)

    @pytest.mark.parametrize("name, value", [
        ("SECUREFIELDS_LOGGING__LEVEL", "VERBOSE"),
        ("SECUREFIELDS_LOGGING__LOG_DIR", "relative/logs"),
        ("XDG_STATE_HOME", "relative/state"),
    ])
    def test_logging_settings_do_not_block_construction(self, monkeypatch, name, value):
        monkeypatch.setenv("SECUREFIELDS_SECURITY__KDF_ITERATIONS", "20000")
        monkeypatch.setenv(name, value)

        engine = FieldEncryptionEngine(PASSPHRASE)

        assert "cost=20000" in repr(engine.codec)

    def test_explicit_config_is_used(self, monkeypatch):
        monkeypatch.setenv("SECUREFIELDS_SECURITY__KDF_ITERATIONS", "20000")
        config = SecureConfig(security=SecurityConfig(kdf_iterations=30_000))

        engine = FieldEncryptionEngine(PASSPHRASE, config=config)

        assert "cost=30000" in repr(engine.codec)

    def test_repr_hides_passphrase(self, engine):
        assert PASSPHRASE not in repr(engine)

    def test_is_an_encryption_provider(self, engine):
        assert isinstance(engine, EncryptionProvider)


# =============================================================================
# ROUND TRIP
# =============================================================================

class TestRoundTrip:
    """Encrypt then decrypt restores every confidential field."""

    def test_name_value_scenario(self, engine):
        item = SecureConfigurationItem(name="alice", value="secret")

        engine.encrypt_object(item)

        assert item.name != "alice"
        assert item.value != "secret"
        assert item.name != item.value

        engine.decrypt_object(item)

        assert item.name == "alice"
        assert item.value == "secret"

    @pytest.mark.parametrize("plaintext", [
        "",
        "a",
        "pässwörd ✓ 秘密",
        "line one\nline two\t\x00end",
        "x" * 10_000,
    ])
    def test_arbitrary_strings(self, engine, plaintext):
        account = Account("bob", plaintext)

        engine.encrypt_object(account)
        engine.decrypt_object(account)

        assert account.token == plaintext

    def test_same_plaintext_gives_distinct_envelopes(self, engine):
        first = Account("a", "same")
        second = Account("b", "same")

        engine.encrypt_object(first)
        engine.encrypt_object(second)

        assert first.token != second.token

    def test_unmarked_fields_untouched(self, engine):
        account = Account("bob", "t0ken")

        engine.encrypt_object(account)
        assert account.login == "bob"

        engine.decrypt_object(account)
        assert account.login == "bob"
        assert account.token == "t0ken"

    def test_dataclass_field_marker(self, engine):
        credential = ApiCredential(client_id="client", secret="s3cret")

        engine.encrypt_object(credential)
        assert credential.client_id == "client"
        assert credential.secret != "s3cret"

        engine.decrypt_object(credential)
        assert credential.secret == "s3cret"

    def test_value_round_trip(self, engine):
        text = engine.encrypt_value("standalone")

        assert text != "standalone"
        assert engine.decrypt_value(text) == "standalone"

    def test_other_engine_with_same_passphrase_decrypts(self, engine, fast_config):
        item = SecureConfigurationItem(name="alice", value="secret")
        engine.encrypt_object(item)

        FieldEncryptionEngine(PASSPHRASE, config=fast_config).decrypt_object(item)

        assert (item.name, item.value) == ("alice", "secret")

    def test_field_order_is_declaration_order(self, engine):
        recorder = OrderRecorder()

        engine.encrypt_object(recorder)
        engine.decrypt_object(recorder)

        assert recorder.calls == ["alpha", "beta", "gamma"] * 2

    def test_concurrent_use_on_distinct_objects(self, engine):
        items = [SecureConfigurationItem(name=f"n{i}", value=f"v{i}") for i in range(8)]

        def round_trip(item):
            engine.encrypt_object(item)
            engine.decrypt_object(item)
            return item

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(round_trip, items))

        assert [(r.name, r.value) for r in results] == [(f"n{i}", f"v{i}") for i in range(8)]


# =============================================================================
# NO-OP TARGETS
# =============================================================================

class TestNoConfidentialFields:
    """Objects without confidential fields are left unchanged."""

    def test_plain_configuration_item(self, engine):
        item = ConfigurationItem(name="host", value="localhost")

        engine.encrypt_object(item)
        assert (item.name, item.value) == ("host", "localhost")

        engine.decrypt_object(item)
        assert (item.name, item.value) == ("host", "localhost")

    def test_builtin_object(self, engine):
        engine.encrypt_object(object())
        engine.decrypt_object("plain string")

    def test_inherited_fields_are_not_processed(self, engine):
        account = PremiumAccount("bob", "t0ken")

        engine.encrypt_object(account)

        assert account.token == "t0ken"

    def test_only_own_fields_of_subclass_are_processed(self, engine):
        account = ExtendedAccount("bob", "t0ken", "r3covery")

        engine.encrypt_object(account)

        assert account.token == "t0ken"
        assert account.recovery_code != "r3covery"

        engine.decrypt_object(account)
        assert account.recovery_code == "r3covery"

    def test_none_target_rejected(self, engine):
        with pytest.raises(ValueError, match="must not be None"):
            engine.encrypt_object(None)


# =============================================================================
# CONFIGURATION FAILURES
# =============================================================================

class TestConfigurationFailures:
    """Type and accessor failures abort before any mutation."""

    @pytest.mark.parametrize("operation", ["encrypt_object", "decrypt_object"])
    def test_non_string_field(self, engine, operation):
        item = NumberedItem()

        with pytest.raises(FieldTypeError) as exc_info:
            getattr(engine, operation)(item)

        assert exc_info.value.field_name == "number"
        assert exc_info.value.type_name == "NumberedItem"
        assert item.label == "label"
        assert item.number == 42

    @pytest.mark.parametrize("operation", ["encrypt_object", "decrypt_object"])
    def test_missing_setter(self, engine, operation):
        target = MissingSetter()

        with pytest.raises(AccessorResolutionError, match="MissingSetter::second") as exc_info:
            getattr(engine, operation)(target)

        assert exc_info.value.field_name == "second"
        assert (target.first, target.second) == ("one", "two")

    def test_missing_getter(self, engine):
        target = MissingGetter()

        with pytest.raises(AccessorResolutionError, match="getHidden"):
            engine.encrypt_object(target)

        assert target.hidden == "value"

    def test_setter_failure_is_wrapped(self, engine):
        target = BrokenSetter()

        with pytest.raises(AccessorInvocationError) as exc_info:
            engine.encrypt_object(target)

        assert isinstance(exc_info.value, AccessorResolutionError)
        assert isinstance(exc_info.value.cause, RuntimeError)


# =============================================================================
# CODEC FAILURES
# =============================================================================

class TestCodecFailures:
    """Serialization and cipher failures are wrapped, not swallowed."""

    def test_decrypting_plaintext_fails(self, engine):
        item = SecureConfigurationItem(name="alice", value="secret")

        with pytest.raises(SerializationError) as exc_info:
            engine.decrypt_object(item)

        assert isinstance(exc_info.value.cause, EnvelopeFormatError)
        assert exc_info.value.field_name == "name"
        assert item.name == "alice"

    def test_decrypting_twice_fails(self, engine):
        item = SecureConfigurationItem(name="alice", value="secret")
        engine.encrypt_object(item)
        engine.decrypt_object(item)

        with pytest.raises(SerializationError):
            engine.decrypt_object(item)

    def test_partial_state_is_kept_on_failure(self, engine):
        item = SecureConfigurationItem(name="alice", value="secret")
        engine.encrypt_object(item)
        item.value = "never encrypted"

        with pytest.raises(SerializationError) as exc_info:
            engine.decrypt_object(item)

        assert exc_info.value.field_name == "value"
        assert item.name == "alice"
        assert item.value == "never encrypted"

    def test_wrong_passphrase(self, engine, other_engine):
        item = SecureConfigurationItem(name="alice", value="secret")
        engine.encrypt_object(item)
        sealed_name = item.name

        with pytest.raises(CryptoOperationError) as exc_info:
            other_engine.decrypt_object(item)

        assert isinstance(exc_info.value.cause, CipherError)
        assert item.name == sealed_name

    def test_wrong_passphrase_both_ways(self, engine, other_engine):
        ours = engine.encrypt_value("same plaintext")
        theirs = other_engine.encrypt_value("same plaintext")

        with pytest.raises(CryptoOperationError):
            other_engine.decrypt_value(ours)
        with pytest.raises(CryptoOperationError):
            engine.decrypt_value(theirs)

    def test_unencodable_string(self, engine):
        account = Account("bob", "\ud800")

        with pytest.raises(SerializationError):
            engine.encrypt_object(account)

        assert account.token == "\ud800"

    def test_getter_returning_non_string(self, engine):
        with pytest.raises(SerializationError):
            engine.encrypt_object(NoneGetter())

    def test_all_errors_share_a_base(self):
        for error in (
            InitializationError,
            FieldTypeError,
            AccessorResolutionError,
            SerializationError,
            CryptoOperationError,
        ):
            assert issubclass(error, EncryptionProviderError)
