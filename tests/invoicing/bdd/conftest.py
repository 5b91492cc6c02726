"""Shared BDD fixtures and step definitions for the Invoicing domain."""

import pytest
from invoicing.draft.draft import InvoiceDraft
from invoicing.draft.session import DraftSession
from pytest_bdd import given


@pytest.fixture()
def draft_inputs():
    """Raw lines and global discount collected by Given steps."""
    return {"lines": [], "global_discount": None}


@pytest.fixture()
def commits():
    return []


@given("an editing session with one service line", target_fixture="session")
def _editing_session(commits):
    session = DraftSession(InvoiceDraft.blank())
    session.subscribe(lambda draft, derivation: commits.append(derivation))
    return session
