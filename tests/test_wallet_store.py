import json
from pathlib import Path

import pytest

from arcmint.wallet_store import (
    NoteStatus,
    StoredNote,
    WalletError,
    WalletFile,
    default_wallet_dir,
    list_notes,
    load_wallet,
    resolve_coordinator_url,
    resolve_gateway_url,
    save_wallet,
    wallet_file_path,
)

SERIAL_A = "ab" * 32
SERIAL_B = "cd" * 32


def make_note(serial=SERIAL_A, status=NoteStatus.UNSPENT, denomination=1000):
    return StoredNote(
        serial=serial,
        denomination=denomination,
        signed_note={"data": {"serial": [1, 2, 3]}, "signature": "00ff"},
        a_bits=[0, 1, 1],
        b_bits=[1, 0, 1],
        pair_randomness=[("11" * 32, "22" * 32)],
        status=status,
    )


def make_wallet(*notes):
    return WalletFile(
        theta_u="aa" * 32,
        r_u_bytes="bb" * 32,
        gateway_token="token",
        notes=list(notes),
    )


def test_wallet_file_path_appends_file_name(tmp_path):
    assert wallet_file_path(tmp_path) == tmp_path / "wallet.json"


def test_default_wallet_dir_uses_home(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert default_wallet_dir() == str(tmp_path / ".arcmint")


def test_default_wallet_dir_falls_back_to_userprofile(monkeypatch, tmp_path):
    monkeypatch.delenv("HOME", raising=False)
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    assert default_wallet_dir() == str(tmp_path / ".arcmint")


def test_default_wallet_dir_relative_without_home(monkeypatch):
    monkeypatch.delenv("HOME", raising=False)
    monkeypatch.delenv("USERPROFILE", raising=False)
    assert default_wallet_dir() == ".arcmint"


def test_stored_note_dict_round_trip():
    note = make_note(status=NoteStatus.PENDING_SPEND)
    assert StoredNote.from_dict(note.to_dict()) == note


def test_stored_note_status_serialised_as_name():
    assert make_note(status=NoteStatus.PENDING_SPEND).to_dict()["status"] == "PendingSpend"
    assert make_note().to_dict()["pair_randomness"] == [["11" * 32, "22" * 32]]


def test_stored_note_summary():
    note = make_note(denomination=500)
    assert note.summary() == f"serial={SERIAL_A} denom=500 status=Unspent"


def test_stored_note_rejects_unknown_status():
    data = make_note().to_dict()
    data["status"] = "Lost"
    with pytest.raises(WalletError):
        StoredNote.from_dict(data)


def test_stored_note_rejects_missing_field():
    data = make_note().to_dict()
    del data["signed_note"]
    with pytest.raises(WalletError, match="signed_note"):
        StoredNote.from_dict(data)


def test_stored_note_rejects_negative_denomination():
    data = make_note().to_dict()
    data["denomination"] = -1
    with pytest.raises(WalletError):
        StoredNote.from_dict(data)


def test_stored_note_rejects_bad_bits():
    data = make_note().to_dict()
    data["a_bits"] = [0, 256]
    with pytest.raises(WalletError):
        StoredNote.from_dict(data)


def test_wallet_file_dict_round_trip():
    wallet = make_wallet(make_note(), make_note(SERIAL_B, NoteStatus.SPENT))
    assert WalletFile.from_dict(wallet.to_dict()) == wallet


def test_find_spendable_is_case_insensitive():
    wallet = make_wallet(make_note())
    found = wallet.find_spendable(SERIAL_A.upper())
    assert found is wallet.notes[0]


def test_find_spendable_missing_serial():
    wallet = make_wallet(make_note())
    with pytest.raises(WalletError, match="not found"):
        wallet.find_spendable(SERIAL_B)


def test_find_spendable_rejects_spent():
    wallet = make_wallet(make_note(status=NoteStatus.SPENT))
    with pytest.raises(WalletError, match="already marked as spent"):
        wallet.find_spendable(SERIAL_A)


def test_find_spendable_rejects_pending():
    wallet = make_wallet(make_note(status=NoteStatus.PENDING_SPEND))
    with pytest.raises(WalletError, match="PendingSpend"):
        wallet.find_spendable(SERIAL_A)


def test_save_and_load_round_trip(tmp_path):
    path = wallet_file_path(tmp_path / "nested" / "dir")
    wallet = make_wallet(make_note(), make_note(SERIAL_B, NoteStatus.SPENT))
    save_wallet(path, wallet)
    assert load_wallet(path) == wallet
    assert not path.with_name("wallet.json.tmp").exists()


def test_saved_file_is_pretty_json(tmp_path):
    path = tmp_path / "wallet.json"
    wallet = make_wallet(make_note())
    save_wallet(path, wallet)
    text = path.read_text(encoding="utf-8")
    assert json.loads(text) == wallet.to_dict()
    assert "\n  " in text


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_wallet(tmp_path / "wallet.json")


def test_load_invalid_json_raises(tmp_path):
    path = tmp_path / "wallet.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(WalletError):
        load_wallet(path)


def test_list_notes_returns_summaries_in_order(tmp_path):
    path = tmp_path / "wallet.json"
    notes = [make_note(), make_note(SERIAL_B, NoteStatus.SPENT, denomination=42)]
    save_wallet(path, make_wallet(*notes))
    assert list_notes(path) == [note.summary() for note in notes]


def test_resolve_coordinator_url_prefers_flag(monkeypatch):
    monkeypatch.setenv("COORDINATOR_URL", "http://env.example.com")
    assert resolve_coordinator_url("http://flag.example.com") == "http://flag.example.com"


def test_resolve_coordinator_url_from_env(monkeypatch):
    monkeypatch.setenv("COORDINATOR_URL", "http://env.example.com")
    assert resolve_coordinator_url(None) == "http://env.example.com"


def test_resolve_coordinator_url_missing(monkeypatch):
    monkeypatch.delenv("COORDINATOR_URL", raising=False)
    with pytest.raises(WalletError, match="COORDINATOR_URL"):
        resolve_coordinator_url(None)


def test_resolve_gateway_url_from_env(monkeypatch):
    monkeypatch.setenv("GATEWAY_URL", "http://gw.example.com")
    assert resolve_gateway_url(None) == "http://gw.example.com"


def test_resolve_gateway_url_missing(monkeypatch):
    monkeypatch.delenv("GATEWAY_URL", raising=False)
    with pytest.raises(WalletError, match="--gateway-url"):
        resolve_gateway_url(None)