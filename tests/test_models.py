from __future__ import annotations

import pytest
from pydantic import ValidationError

from humidorsync.descriptors import DESCRIPTORS, PRIMARY_DESCRIPTOR, get_descriptor
from humidorsync.exceptions import ConnectionSetupError
from humidorsync.models.view import SyncError, SyncView

from conftest import doc


def test_view_accepts_camel_case_and_dumps_by_alias() -> None:
    view = SyncView.model_validate({"journalEntries": [{"id": "j1", "data": {"rating": 92}}], "loading": False})

    assert view.journal_entries[0].id == "j1"
    dumped = view.model_dump(by_alias=True)
    assert dumped["journalEntries"][0]["data"] == {"rating": 92}


def test_view_documents_by_descriptor_key() -> None:
    view = SyncView(cigars=(doc("c1"),), journal_entries=(doc("j1"),))

    assert view.documents("cigars")[0].id == "c1"
    assert view.documents("journalEntries")[0].id == "j1"
    assert view.documents("humidors") == ()
    with pytest.raises(KeyError):
        view.documents("loading")


def test_view_is_immutable() -> None:
    view = SyncView()

    with pytest.raises(ValidationError):
        view.loading = False  # type: ignore[misc]


def test_sync_error_fields() -> None:
    error = SyncError(descriptor="humidors", cause="permission-denied")

    assert error.message == ""
    assert error.model_dump() == {"descriptor": "humidors", "cause": "permission-denied", "message": ""}


def test_document_flatten() -> None:
    document = doc("c1", name="Test Cigar", quantity=3)

    assert document.flatten() == {"id": "c1", "name": "Test Cigar", "quantity": 3}


def test_descriptors_and_primary() -> None:
    assert [d.key for d in DESCRIPTORS] == ["humidors", "cigars", "journalEntries"]
    assert PRIMARY_DESCRIPTOR.key == "cigars"
    assert get_descriptor("journalEntries").path(app_id="app", identity="u1") == "artifacts/app/users/u1/journalEntries"


def test_descriptor_path_requires_identity() -> None:
    with pytest.raises(ConnectionSetupError):
        get_descriptor("cigars").path(app_id="app", identity="")
