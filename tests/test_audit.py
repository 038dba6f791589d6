"""Tests for the audit trail."""

import logging
from decimal import Decimal

from siteledger.domain.account import BankAccountService
from siteledger.domain.entities import Actor, AuditAction


def test_mutations_are_recorded_with_actor(temp_db, audit_service):
    actor = Actor(id="u-17", email="owner@site", role="super_admin")
    account = BankAccountService(temp_db, actor).create_account("Ops", "HBL", Decimal("500"))

    records = audit_service.list_records(module="bank_accounts")

    assert len(records) == 1
    record = records[0]
    assert record.action == AuditAction.CREATE
    assert record.actor_id == "u-17"
    assert record.actor_role == "super_admin"
    assert record.entity_id == str(account.id)
    assert '"opening_balance": "500.00"' in record.new_value


def test_audit_failure_does_not_undo_change(temp_db, account_service, audit_service, monkeypatch, caplog):
    def broken(**kwargs):
        raise RuntimeError("audit table locked")

    monkeypatch.setattr(temp_db, "create_audit_record", broken)

    with caplog.at_level(logging.WARNING, logger="siteledger"):
        account = account_service.create_account("Ops", "HBL")

    assert account_service.get_account(account.id).name == "Ops"
    assert "audit write failed" in caplog.text
    monkeypatch.undo()
    assert audit_service.list_records() == []
