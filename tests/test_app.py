"""Tests for the ramdash application."""

from datetime import datetime

import pytest
from textual.widgets import DataTable

from ramdash.aggregator import MemoryAggregator
from ramdash.app import DetailTable, RamdashApp, app_bar, build_tips, format_mb, main, memory_status
from ramdash.models import ApplicationGroup, ScriptProcessDetail, SessionDetail, SystemSnapshot, TabDetail
from tests.fakes import GB, FakeSource, ps_table, vm_stat_text


def make_snapshot(used_gb: float = 14.0, **overrides) -> SystemSnapshot:
    fields = dict(
        total_gb=32,
        used_gb=used_gb,
        free_gb=round(32 - used_gb, 1),
        apps=[],
        tabs=[],
        scripts=[],
        sessions=[],
        workspaces=[],
        sampled_at=datetime(2026, 10, 18, 9, 0, 0),
    )
    fields.update(overrides)
    return SystemSnapshot(**fields)


def session(pid: int, memory_mb: int) -> SessionDetail:
    return SessionDetail(
        working_directory="/Users/max/p",
        project_label="p",
        memory_mb=memory_mb,
        pid=pid,
        is_subordinate=memory_mb < 500,
    )


def make_source() -> FakeSource:
    return FakeSource(
        process_table=ps_table(
            (100, 204800, "/usr/bin/python3 ingest_pipeline.py"),
            (200, 819200, "claude"),
        ),
        vm_stat=vm_stat_text(4, 8, 2),
        total_memory_bytes=32 * GB,
        working_directories={200: "/Users/max/src/[beta] site"},
        tab_listing="[WIP] Pull request|||https://example.com/pr/1\n",
    )


def make_aggregator() -> MemoryAggregator:
    return MemoryAggregator(make_source())


def test_format_mb_megabytes():
    """Test format_mb below a gigabyte."""
    assert format_mb(512) == "512 MB"


def test_format_mb_gigabytes():
    """Test format_mb from 1024 MB up."""
    assert format_mb(1024) == "1.0 GB"
    assert format_mb(15360) == "15.0 GB"


class TestMemoryStatus:
    """Tests for memory_status."""

    @pytest.mark.parametrize(
        ("used_gb", "expected"),
        [(14.0, "OK"), (24.0, "OK"), (24.5, "WARNING"), (28.8, "WARNING"), (29.3, "CRITICAL")],
    )
    def test_thresholds(self, used_gb, expected):
        """Above 75% warns, above 90% is critical."""
        assert memory_status(make_snapshot(used_gb)) == expected


class TestBuildTips:
    """Tests for build_tips."""

    def test_healthy(self):
        """Nothing notable gives the healthy message."""
        assert build_tips(make_snapshot()) == ["Memory usage looks healthy!"]

    def test_all_tips(self):
        """Each condition adds its own tip in order."""
        snapshot = make_snapshot(
            used_gb=28.0,
            apps=[ApplicationGroup(name="Chrome", memory_mb=12288, process_count=40, color="#4285f4")],
            sessions=[session(pid, 800) for pid in range(4)],
            scripts=[ScriptProcessDetail(label="train.py", memory_mb=2048, pid=9)],
        )

        assert build_tips(snapshot) == [
            "Chrome using 12.0 GB - consider closing tabs",
            "4 Claude Code sessions - consider closing some",
            'Python script "train.py" using 2.0 GB',
            "Memory pressure high (88%) - close unused apps",
        ]

    def test_three_sessions_is_fine(self):
        """Three main sessions do not trigger the tip."""
        snapshot = make_snapshot(sessions=[session(pid, 800) for pid in range(3)])
        assert build_tips(snapshot) == ["Memory usage looks healthy!"]


class TestAppBar:
    """Tests for app_bar."""

    def test_segments_scale_with_total(self):
        """Each app above 100 MB gets a share of the 40-cell bar."""
        snapshot = make_snapshot(
            apps=[
                ApplicationGroup(name="Python", memory_mb=8192, process_count=3, color="#3776ab"),
                ApplicationGroup(name="Chrome", memory_mb=4096, process_count=20, color="#4285f4"),
                ApplicationGroup(name="Docker", memory_mb=60, process_count=1, color="#2496ed"),
            ]
        )

        bar, legend = app_bar(snapshot).split("\n")

        assert bar.count("█") == 15
        assert bar.count("░") == 25
        assert "Python" in legend
        assert "Chrome" in legend
        assert "Docker" not in legend

    def test_no_large_apps(self):
        """Nothing above 100 MB gives no bar."""
        snapshot = make_snapshot(
            apps=[ApplicationGroup(name="Docker", memory_mb=60, process_count=1, color="#2496ed")]
        )
        assert app_bar(snapshot) == ""

    def test_unknown_total(self):
        """A zero total gives no bar."""
        snapshot = make_snapshot(
            total_gb=0,
            apps=[ApplicationGroup(name="Python", memory_mb=300, process_count=1, color="#3776ab")],
        )
        assert app_bar(snapshot) == ""


@pytest.mark.asyncio
async def test_app_creation():
    """Test RamdashApp can be instantiated."""
    app = RamdashApp(make_aggregator())
    assert app.title == "ramdash"
    assert app.sub_title == "RAM Dashboard"
    assert app._monitor is not None


@pytest.mark.asyncio
async def test_app_compose():
    """Test RamdashApp composes its panels."""
    app = RamdashApp(make_aggregator())
    async with app.run_test() as pilot:
        for panel in ("#header-stats", "#apps", "#sessions", "#scripts", "#workspaces", "#tabs", "#tips"):
            assert pilot.app.query_one(panel) is not None


@pytest.mark.asyncio
async def test_app_renders_snapshot():
    """Test a snapshot from the monitor reaches the tables."""
    app = RamdashApp(make_aggregator(), poll_rate=0.1)
    async with app.run_test() as pilot:
        await pilot.pause(1.0)
        scripts = pilot.app.query_one("#scripts", DetailTable).query_one(DataTable)
        sessions = pilot.app.query_one("#sessions", DetailTable).query_one(DataTable)
        tabs = pilot.app.query_one("#tabs", DetailTable).query_one(DataTable)
        assert scripts.row_count == 1
        assert sessions.row_count == 1
        assert tabs.row_count == 1


@pytest.mark.asyncio
async def test_render_snapshot_directly():
    """Test render_snapshot fills tables and tips."""
    app = RamdashApp(make_aggregator(), poll_rate=60.0)
    async with app.run_test() as pilot:
        snapshot = make_snapshot(
            apps=[
                ApplicationGroup(name="Python", memory_mb=300, process_count=2, color="#3776ab"),
                ApplicationGroup(name="Docker", memory_mb=20, process_count=1, color="#2496ed"),
            ],
            tabs=[TabDetail(title=f"Tab {i}", url="", memory_mb=100, estimated=True) for i in range(20)],
        )
        pilot.app.render_snapshot(snapshot)
        await pilot.pause()

        apps = pilot.app.query_one("#apps", DetailTable)
        tabs = pilot.app.query_one("#tabs", DetailTable)
        assert apps.query_one(DataTable).row_count == 1
        assert tabs.query_one(DataTable).row_count == 15
        assert tabs.border_subtitle == "20 tabs, 2.0 GB"


@pytest.mark.asyncio
async def test_app_quit_binding():
    """Test that 'q' binding triggers quit."""
    app = RamdashApp(make_aggregator())
    async with app.run_test() as pilot:
        await pilot.press("q")
        assert pilot.app._exit
        assert not pilot.app._monitor.is_running


def test_main_json(monkeypatch, capsys):
    """Test --json prints one snapshot and exits."""
    monkeypatch.setattr("ramdash.app.HostSource", make_source)
    main(["--json"])

    output = capsys.readouterr().out
    assert '"used_gb": 14.0' in output
    assert '"label": "ingest_pipeline.py"' in output


@pytest.mark.asyncio
async def test_empty_breakdowns_show_placeholder():
    """Test empty session, script and workspace tables show one placeholder row."""
    app = RamdashApp(MemoryAggregator(FakeSource()), poll_rate=60.0)
    async with app.run_test() as pilot:
        pilot.app.render_snapshot(make_snapshot())
        await pilot.pause()

        for panel in ("#sessions", "#scripts", "#workspaces"):
            table = pilot.app.query_one(panel, DetailTable).query_one(DataTable)
            assert table.row_count == 1
        tabs = pilot.app.query_one("#tabs", DetailTable).query_one(DataTable)
        assert tabs.row_count == 0
