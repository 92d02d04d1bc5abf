"""Tests for config loader module."""

from pathlib import Path

import pytest

from backerup.config.loader import (
    ConfigError,
    find_config_file,
    generate_example_config,
    load_config,
)
from backerup.config.schema import BackupMethod, Config, JobConfig


class TestFindConfigFile:
    """Tests for find_config_file function."""

    def test_explicit_path_exists(self, config_file):
        """Test finding explicitly specified config file."""
        result = find_config_file(str(config_file))
        assert result == config_file

    def test_explicit_path_not_exists(self, tmp_path):
        """Test error when explicit path doesn't exist."""
        with pytest.raises(ConfigError, match="not found"):
            find_config_file(str(tmp_path / "nonexistent.toml"))

    def test_search_paths(self, tmp_path, monkeypatch, minimal_config_toml):
        """Test the first existing search path wins."""
        first = tmp_path / "first.toml"
        second = tmp_path / "second.toml"
        second.write_text(minimal_config_toml)
        monkeypatch.setattr(
            "backerup.config.loader.CONFIG_PATHS", [first, second]
        )

        assert find_config_file(None) == second

        first.write_text(minimal_config_toml)
        assert find_config_file(None) == first

    def test_no_config_found(self, tmp_path, monkeypatch):
        """Test returning None when no search path exists."""
        monkeypatch.setattr(
            "backerup.config.loader.CONFIG_PATHS", [tmp_path / "missing.toml"]
        )
        assert find_config_file(None) is None


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_valid_config(self, config_file):
        """Test loading a valid configuration file."""
        config, warnings = load_config(config_file)

        assert len(config.jobs) == 2

        documents = config.jobs[0]
        assert documents.id == "documents"
        assert documents.sources == ["/home/user/Documents", "/home/user/notes.txt"]
        assert documents.targets == ["/mnt/backup", "/mnt/offsite"]
        assert documents.method is BackupMethod.INCREMENTAL
        assert documents.schedule == "0 2 * * *"
        assert documents.enabled is True
        assert warnings == []

    def test_numeric_id_and_method_case(self, config_file):
        """Test numeric ids become strings and methods are case-insensitive."""
        config, _ = load_config(config_file)

        job = config.jobs[1]
        assert job.id == "42"
        assert job.method is BackupMethod.DIFFERENTIAL
        assert job.enabled is False
        assert config.get_enabled_jobs() == [config.jobs[0]]
        assert config.get_job(42) is job

    def test_load_minimal_config(self, minimal_config_file):
        """Test loading a minimal configuration file."""
        config, warnings = load_config(minimal_config_file)

        assert len(config.jobs) == 1
        job = config.jobs[0]
        assert job.id == "home"
        assert job.method is BackupMethod.FULL
        assert job.schedule == ""
        assert job.retention.count == 0
        assert job.retention.size == 1
        assert job.require_target_success is False

    def test_load_with_global_settings(self, config_file):
        """Test that global settings are loaded correctly."""
        config, _ = load_config(config_file)

        assert config.global_config.state_dir == "/var/lib/backerup"
        assert config.global_config.log_file == "/var/log/backerup.log"
        assert config.global_config.parallel_jobs == 2
        assert config.global_config.poll_interval == 30

    def test_load_with_retention(self, config_file):
        """Test that retention settings are loaded correctly."""
        config, _ = load_config(config_file)

        assert config.jobs[0].retention.count == 5
        assert config.jobs[0].retention.size == 7
        assert config.jobs[1].retention.count == 0

    def test_require_target_success_inherits_global(self, config_file):
        """Test job-level override of the global bookkeeping setting."""
        config, _ = load_config(config_file)

        assert config.global_config.require_target_success is True
        assert config.jobs[0].require_target_success is True
        assert config.jobs[1].require_target_success is False

    def test_load_nonexistent_file(self, tmp_path):
        """Test error when loading nonexistent file."""
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_config(tmp_path / "nonexistent.toml")

    def test_load_invalid_toml(self, tmp_config_dir):
        """Test error when loading invalid TOML."""
        bad_config = tmp_config_dir / "bad.toml"
        bad_config.write_text("this is not valid [ toml")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(bad_config)

    def test_load_missing_job_id(self, tmp_config_dir):
        """Test error when a job is missing its id."""
        bad_config = tmp_config_dir / "no_id.toml"
        bad_config.write_text("""
[[jobs]]
sources = ["/home"]
targets = ["/mnt/backup"]
""")

        with pytest.raises(ConfigError, match="id"):
            load_config(bad_config)

    def test_load_unknown_method(self, tmp_config_dir):
        """Test error when the backup method is unknown."""
        bad_config = tmp_config_dir / "bad_method.toml"
        bad_config.write_text("""
[[jobs]]
id = "a"
method = "mirror"
""")

        with pytest.raises(ConfigError, match="Unknown backup method"):
            load_config(bad_config)

    def test_load_duplicate_job_ids(self, tmp_config_dir):
        """Test error when two jobs share an id."""
        bad_config = tmp_config_dir / "dupes.toml"
        bad_config.write_text("""
[[jobs]]
id = "a"

[[jobs]]
id = "a"
""")

        with pytest.raises(ConfigError, match="Duplicate"):
            load_config(bad_config)

    def test_empty_config(self, tmp_config_dir):
        """Test loading an empty config file."""
        empty_config = tmp_config_dir / "empty.toml"
        empty_config.write_text("")

        config, warnings = load_config(empty_config)
        assert len(config.jobs) == 0
        assert "No jobs configured" in warnings

    def test_example_config_is_loadable(self, tmp_config_dir):
        """Test the generated example parses without warnings."""
        path = tmp_config_dir / "example.toml"
        path.write_text(generate_example_config())

        config, warnings = load_config(path)
        assert [j.id for j in config.jobs] == ["documents"]
        assert warnings == []


class TestConfigTypes:
    """Tests for type checks on configuration values."""

    @pytest.mark.parametrize(
        "setting, message",
        [
            ("schedule = 5", "Job 'a': 'schedule' must be a string"),
            ("enabled = \"yes\"", "Job 'a': 'enabled' must be true or false"),
            (
                "require_target_success = 1",
                "Job 'a': 'require_target_success' must be true or false",
            ),
        ],
    )
    def test_job_setting_types(self, tmp_config_dir, setting, message):
        """Test that a job setting of the wrong type is a ConfigError."""
        path = tmp_config_dir / "typed.toml"
        path.write_text(f'[[jobs]]\nid = "a"\n{setting}\n')

        with pytest.raises(ConfigError) as excinfo:
            load_config(path)
        assert str(excinfo.value) == message

    @pytest.mark.parametrize(
        "setting, key",
        [
            ("state_dir = 3", "state_dir"),
            ("log_file = false", "log_file"),
            ("parallel_jobs = \"4\"", "parallel_jobs"),
            ("parallel_jobs = true", "parallel_jobs"),
            ("poll_interval = 1.5", "poll_interval"),
            ("require_target_success = \"no\"", "require_target_success"),
        ],
    )
    def test_global_setting_types(self, tmp_config_dir, setting, key):
        """Test that a global setting of the wrong type is a ConfigError."""
        path = tmp_config_dir / "typed.toml"
        path.write_text(f"[global]\n{setting}\n")

        with pytest.raises(ConfigError, match=f"'{key}' must be"):
            load_config(path)

    def test_poll_interval_must_be_positive(self, tmp_config_dir):
        """Test that a zero polling interval is rejected."""
        path = tmp_config_dir / "typed.toml"
        path.write_text("[global]\npoll_interval = 0\n")

        with pytest.raises(ConfigError, match="greater than 0"):
            load_config(path)

    def test_negative_parallel_jobs_is_accepted(self, tmp_config_dir):
        """Test that a negative job limit loads and means no limit."""
        path = tmp_config_dir / "typed.toml"
        path.write_text("[global]\nparallel_jobs = -1\n")

        config, _ = load_config(path)
        assert config.global_config.parallel_jobs == -1

    def test_non_table_entries(self, tmp_config_dir):
        """Test that jobs and global must be tables."""
        path = tmp_config_dir / "typed.toml"
        path.write_text("jobs = [1, 2]\n")
        with pytest.raises(ConfigError, match="must be a table"):
            load_config(path)

        path.write_text("global = \"x\"\n")
        with pytest.raises(ConfigError, match="must be a table"):
            load_config(path)


class TestConfigWarnings:
    """Tests for configuration warnings."""

    def test_warning_for_missing_targets(self, tmp_config_dir):
        """Test warning when a job has no targets."""
        config_path = tmp_config_dir / "no_targets.toml"
        config_path.write_text("""
[[jobs]]
id = "a"
sources = ["/home"]
""")

        _, warnings = load_config(config_path)
        assert any("no targets" in w for w in warnings)

    def test_warning_for_blank_sources(self, tmp_config_dir):
        """Test blank sources count as no sources."""
        config_path = tmp_config_dir / "blank_sources.toml"
        config_path.write_text("""
[[jobs]]
id = "a"
sources = ["", "   "]
targets = ["/mnt/backup"]
""")

        _, warnings = load_config(config_path)
        assert any("no sources" in w for w in warnings)

    def test_warning_for_duplicate_targets(self, tmp_config_dir):
        """Test warning when a target appears twice."""
        config_path = tmp_config_dir / "dupe_targets.toml"
        config_path.write_text("""
[[jobs]]
id = "a"
sources = ["/home"]
targets = ["/mnt/backup", "/mnt/backup"]
""")

        _, warnings = load_config(config_path)
        assert any("duplicate target" in w for w in warnings)

    def test_warning_for_invalid_schedule(self, tmp_config_dir):
        """Test warning when a schedule cannot be parsed."""
        config_path = tmp_config_dir / "bad_schedule.toml"
        config_path.write_text("""
[[jobs]]
id = "a"
sources = ["/home"]
targets = ["/mnt/backup"]
schedule = "every night"
""")

        _, warnings = load_config(config_path)
        assert any("invalid schedule" in w for w in warnings)


class TestSchema:
    """Tests for schema helpers."""

    def test_active_sources_skips_blank(self):
        job = JobConfig(id="a", sources=["/a", "", "  ", "/b"])
        assert job.active_sources() == ["/a", "/b"]

    def test_method_parsed_from_string(self):
        job = JobConfig(id=7, method="incremental")
        assert job.id == "7"
        assert job.method is BackupMethod.INCREMENTAL

    def test_unknown_method_raises(self):
        with pytest.raises(ValueError):
            JobConfig(id="a", method="copy")

    def test_get_job_missing(self):
        assert Config().get_job("nope") is None

    def test_default_state_dir_is_user_path(self):
        assert Path(Config().global_config.state_dir).parts[0] == "~"
