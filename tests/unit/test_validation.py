"""Unit tests for boundary validation and error-to-status mapping."""

import importlib
import warnings

import pytest

import furioza.api.errors

from furioza.api.errors import status_for
from furioza.engines.community.transfers import parse_age, parse_transfer_type
from furioza.kernel.errors import (
    CooldownActive,
    FuriozaError,
    InvalidState,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from furioza.kernel.models.transfer import TransferType
from furioza.kernel.permissions.permission_service import parse_permission
from furioza.kernel.profile.profile_service import normalize_email


class TestParseAge:
    @pytest.mark.parametrize("value,expected", [(1, 1), (99, 99), ("23", 23), (" 30 ", 30)])
    def test_valid(self, value, expected):
        assert parse_age(value) == expected

    @pytest.mark.parametrize("value", [0, 100, -3, "abc", "12a", "", "2.5", 2.5, True])
    def test_invalid(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_age(value)
        assert exc_info.value.field == "age"


class TestParseTransferType:
    def test_known(self):
        assert parse_transfer_type("out") is TransferType.OUT

    def test_unknown(self):
        with pytest.raises(ValidationError):
            parse_transfer_type("loan")


class TestParsePermission:
    def test_known_key(self):
        assert parse_permission("ban_users") == "ban_users"

    def test_unknown_key(self):
        with pytest.raises(ValidationError):
            parse_permission("delete_everything")


class TestNormalizeEmail:
    def test_lowercases(self):
        assert normalize_email(" Bramkarz@Furioza.PL ") == "bramkarz@furioza.pl"

    def test_invalid(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_email("not-an-email")
        assert exc_info.value.field == "email"


class TestStatusMapping:
    @pytest.mark.parametrize("error,status_code", [
        (PermissionDenied("no"), 403),
        (CooldownActive("email", 3), 429),
        (InvalidState("locked"), 409),
        (NotFound("Thread"), 404),
        (ValidationError("bad"), 422),
        (FuriozaError("other"), 400),
    ])
    def test_codes(self, error, status_code):
        assert status_for(error) == status_code

    def test_mapping_uses_no_deprecated_status_names(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            module = importlib.reload(furioza.api.errors)
        assert module.status_for(ValidationError("bad")) == 422
