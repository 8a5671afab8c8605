"""Tests for outcome, target and credential models."""

from ssh_dispatch.models import (
    HostOutcome,
    HostTarget,
    KeyCredential,
    OutcomeStatus,
    ProxyHop,
    RunReport,
)


def test_host_target_label() -> None:
    """Label combines address and port."""
    target = HostTarget("web1.example.com", 2222)
    assert target.label == "web1.example.com:2222"
    assert target.connection_string("deploy") == "deploy@web1.example.com:2222"


def test_outcome_text_replaces_invalid_utf8() -> None:
    """Undecodable bytes do not break text access."""
    outcome = HostOutcome(
        HostTarget("a"), OutcomeStatus.SUCCESS, output=b"ok \xff\n"
    )
    assert outcome.text == "ok \ufffd\n"


def test_outcome_repr_omits_output() -> None:
    """repr shows the output size only."""
    outcome = HostOutcome(
        HostTarget("a"), OutcomeStatus.TIMEOUT, exit_code=124, output=b"secret"
    )
    assert "secret" not in repr(outcome)
    assert "status=timeout" in repr(outcome)


def test_report_success_requires_all_hosts() -> None:
    """A single failure fails the whole report."""
    ok = HostOutcome(HostTarget("a"), OutcomeStatus.SUCCESS)
    bad = HostOutcome(HostTarget("b"), OutcomeStatus.NONZERO_EXIT, exit_code=3)
    assert RunReport([ok, ok]).success
    report = RunReport([ok, bad, ok])
    assert not report.success
    assert report.failed == [bad]


def test_key_material_normalized() -> None:
    """A trailing newline is added once."""
    assert KeyCredential("abc").normalized() == "abc\n"
    assert KeyCredential("abc\n").normalized() == "abc\n"


def test_key_credential_repr_hides_material() -> None:
    """Key material and passphrase never show up in repr."""
    credential = KeyCredential("PRIVATE", passphrase="PASSPHRASE")
    assert "PRIVATE" not in repr(credential)
    assert "PASSPHRASE" not in repr(credential)


def test_proxy_directive() -> None:
    """Directive is user@host:port."""
    assert ProxyHop("bastion", "ops", 2200).directive == "ops@bastion:2200"
