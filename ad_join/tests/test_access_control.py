"""Tests for allow-list parsing and SSSD configuration."""

from __future__ import annotations

import stat
from pathlib import Path

import pytest

from ad_join._access_control import (
    AllowList,
    backup_existing,
    clear_sssd_cache,
    configure_sssd,
    enable_mkhomedir,
    normalise_allow_list,
    render_sssd_conf,
)
from ad_join._commands import JoinReport, StepOutcome
from ad_join._join_models import DomainJoinRequest
from ad_join.tests._fakes import FakeRunner


def _request(**overrides: str) -> DomainJoinRequest:
    defaults = {
        "domain": "example.com",
        "admin_user": "Administrator",
        "admin_password": "S3cret!",
        "hostname": "web01",
        "raw_users": "Alice,Bob",
        "raw_groups": "none",
    }
    defaults.update(overrides)
    return DomainJoinRequest(**defaults)


class _Clock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.mark.parametrize("raw", ["", "None", "NONE", "none"])
def test_normalise_allow_list_empty_inputs(raw: str) -> None:
    assert normalise_allow_list(raw) == ()


def test_normalise_allow_list_lowercases_and_trims() -> None:
    assert normalise_allow_list("Alice, Bob, Carol") == ("alice", "bob", "carol")


def test_normalise_allow_list_drops_empty_tokens_and_duplicates() -> None:
    assert normalise_allow_list(" alice ,, Bob,ALICE,") == ("alice", "bob")


def test_allow_list_from_request() -> None:
    allow_list = AllowList.from_request(
        _request(raw_users="Alice,Bob", raw_groups="Linux Admins, DevOps")
    )
    assert allow_list.users == ("alice", "bob")
    assert allow_list.groups == ("linux admins", "devops")


def test_render_sssd_conf_users_only() -> None:
    text = render_sssd_conf("example.com", AllowList(users=("alice", "bob")))
    lines = text.splitlines()
    assert "domains = example.com" in lines
    assert "[domain/example.com]" in lines
    assert "krb5_realm = EXAMPLE.COM" in lines
    assert "simple_allow_users = alice,bob" in lines
    assert not any(line.startswith("simple_allow_groups") for line in lines)


def test_render_sssd_conf_keeps_domain_case() -> None:
    text = render_sssd_conf("Corp.Example.COM", AllowList())
    assert "ad_domain = Corp.Example.COM" in text
    assert "krb5_realm = CORP.EXAMPLE.COM" in text
    assert "simple_allow" not in text


def test_render_sssd_conf_groups_only() -> None:
    text = render_sssd_conf("example.com", AllowList(groups=("admins",)))
    assert "simple_allow_groups = admins" in text
    assert "simple_allow_users" not in text


def test_backup_existing_skips_missing_file(tmp_path: Path) -> None:
    assert backup_existing(tmp_path / "sssd.conf", _Clock()) is None
    assert list(tmp_path.iterdir()) == []


def test_backup_existing_creates_distinct_backups(tmp_path: Path) -> None:
    conf = tmp_path / "sssd.conf"
    conf.write_text("first\n", encoding="utf-8")
    clock = _Clock()

    first = backup_existing(conf, clock)
    conf.write_text("second\n", encoding="utf-8")
    second = backup_existing(conf, clock)

    assert first is not None and second is not None
    assert first != second
    assert first.name == "sssd.conf.bak.1700000000"
    assert first.read_text(encoding="utf-8") == "first\n"
    assert second.read_text(encoding="utf-8") == "second\n"


def test_configure_sssd_writes_private_config(
    tmp_path: Path, fake_runner: FakeRunner
) -> None:
    conf = tmp_path / "sssd" / "sssd.conf"
    report = JoinReport()

    backup = configure_sssd(
        _request(),
        AllowList(users=("alice", "bob")),
        conf,
        (),
        fake_runner,
        report,
        _Clock(),
    )

    assert backup is None
    assert stat.S_IMODE(conf.stat().st_mode) == 0o600
    assert "simple_allow_users = alice,bob" in conf.read_text(encoding="utf-8")
    assert report.outcome_of("sssd:write-config") is StepOutcome.SUCCESS


def test_configure_sssd_backs_up_previous_config(
    tmp_path: Path, fake_runner: FakeRunner
) -> None:
    conf = tmp_path / "sssd.conf"
    conf.write_text("[sssd]\nold = true\n", encoding="utf-8")

    backup = configure_sssd(
        _request(), AllowList(), conf, (), fake_runner, JoinReport(), _Clock()
    )

    assert backup is not None
    assert backup.read_text(encoding="utf-8") == "[sssd]\nold = true\n"
    assert "old = true" not in conf.read_text(encoding="utf-8")


def test_configure_sssd_clears_cache_while_stopped(
    tmp_path: Path, fake_runner: FakeRunner
) -> None:
    db_dir = tmp_path / "db"
    mc_dir = tmp_path / "mc"
    db_dir.mkdir()
    mc_dir.mkdir()
    (db_dir / "cache_example.com.ldb").write_text("x", encoding="utf-8")
    (mc_dir / "passwd").write_text("x", encoding="utf-8")
    (mc_dir / "nested").mkdir()

    cache_state: dict[str, bool] = {}

    def observe(argv: tuple[str, ...]) -> None:
        if argv[:2] in {("systemctl", "stop"), ("systemctl", "start")}:
            cache_state[argv[1]] = any(db_dir.iterdir()) or any(mc_dir.iterdir())

    fake_runner.observers.append(observe)
    configure_sssd(
        _request(),
        AllowList(),
        tmp_path / "sssd.conf",
        (db_dir, mc_dir),
        fake_runner,
        JoinReport(),
        _Clock(),
    )

    assert cache_state == {"stop": True, "start": False}
    assert db_dir.is_dir() and mc_dir.is_dir()
    assert fake_runner.index("systemctl", "stop", "sssd") < fake_runner.index(
        "systemctl", "start", "sssd"
    )


def test_configure_sssd_tolerates_service_failures(
    tmp_path: Path, fake_runner: FakeRunner
) -> None:
    fake_runner.fail("systemctl", "start", "sssd")
    report = JoinReport()

    configure_sssd(
        _request(), AllowList(), tmp_path / "sssd.conf", (), fake_runner, report, _Clock()
    )

    assert report.outcome_of("sssd:start") is StepOutcome.TOLERATED_FAILURE
    assert report.outcome_of("sssd:stop") is StepOutcome.SUCCESS


def test_clear_sssd_cache_ignores_missing_dirs(tmp_path: Path) -> None:
    assert clear_sssd_cache([tmp_path / "missing"]) == []


def test_enable_mkhomedir_uses_first_available_tool() -> None:
    runner = FakeRunner(missing={"authselect"})
    report = JoinReport()

    tool = enable_mkhomedir(runner, report)

    assert tool == "pam-auth-update"
    assert runner.argvs == [("pam-auth-update", "--enable", "mkhomedir", "--force")]
    assert report.outcome_of("enable-mkhomedir") is StepOutcome.SUCCESS


def test_enable_mkhomedir_without_tools_is_tolerated() -> None:
    runner = FakeRunner(missing={"authselect", "pam-auth-update", "pam-config"})
    report = JoinReport()

    assert enable_mkhomedir(runner, report) is None
    assert runner.argvs == []
    assert report.outcome_of("enable-mkhomedir") is StepOutcome.TOLERATED_FAILURE
