from __future__ import annotations

import pytest

from escrow_fixtures import PART, base_state, fixed_secret_set, partial_call, state_with_escrow
from htlc_spec.state_digest import compute_state_digest
from htlc_spec.state_transition import apply_call
from tools.fixtures_io import state_to_json


def test_digest_is_deterministic() -> None:
    secrets = fixed_secret_set()
    first, _ = state_with_escrow(secrets)
    second, _ = state_with_escrow(secrets)
    assert state_to_json(first)["state_digest"] == state_to_json(second)["state_digest"]
    assert len(state_to_json(first)["state_digest"]) == 64


def test_digest_ignores_list_order() -> None:
    doc = state_to_json(base_state())
    reordered = dict(doc, accounts=list(reversed(doc["accounts"])))
    assert compute_state_digest(doc) == compute_state_digest(reordered)


def test_digest_tracks_fills() -> None:
    secrets = fixed_secret_set()
    pre, eid = state_with_escrow(secrets, lock_index=1)
    post, result = apply_call(pre, partial_call(eid, secrets, 1, PART))
    assert result.ok
    assert state_to_json(pre)["state_digest"] != state_to_json(post)["state_digest"]


def test_digest_rejects_short_escrow_id() -> None:
    doc = state_to_json(state_with_escrow(fixed_secret_set())[0])
    doc["escrows"][0]["id"] = "abcd"
    with pytest.raises(ValueError):
        compute_state_digest(doc)
