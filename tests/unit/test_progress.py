from __future__ import annotations

from unittest.mock import Mock, patch

from roster_import.models.import_row import ImportRow, RowStatus
from roster_import.services.progress import ProgressTracker, is_tty_enabled


def _row(status: RowStatus) -> ImportRow:
    return ImportRow("a@b.com", 2, status, "")


def test_is_tty_enabled_returns_stdout_isatty():
    """Test that is_tty_enabled returns sys.stdout.isatty()."""
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True

    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    """Test cases for ProgressTracker class."""

    def test_init_with_tty_enabled(self):
        with patch('roster_import.services.progress.is_tty_enabled', return_value=True), \
             patch('roster_import.services.progress.tqdm') as mock_tqdm:

            tracker = ProgressTracker(4, description="Test import")

            assert tracker.total_rows == 4
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=100,
                desc="Test import",
                unit="%",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch('roster_import.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(4)

            assert tracker.enabled is False
            assert tracker.pbar is None

    def test_record_moves_bar_by_percent_delta(self):
        mock_pbar = Mock()

        with patch('roster_import.services.progress.is_tty_enabled', return_value=True), \
             patch('roster_import.services.progress.tqdm', return_value=mock_pbar):

            tracker = ProgressTracker(3)
            tracker.record(33, _row(RowStatus.SUCCESS))
            tracker.record(67, _row(RowStatus.ERROR))
            tracker.record(100, _row(RowStatus.SUCCESS))

            assert [c.args[0] for c in mock_pbar.update.call_args_list] == [33, 34, 33]
            mock_pbar.set_postfix.assert_called_with(rows="3/3", ok=2, failed=1)
            assert (tracker.successful, tracker.failed, tracker.percent) == (2, 1, 100)

    def test_record_with_tty_disabled_still_counts(self):
        with patch('roster_import.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(2)
            tracker.record(50, _row(RowStatus.ERROR))

            assert tracker.failed == 1
            assert tracker.percent == 50

    def test_context_manager_closes_bar(self):
        mock_pbar = Mock()

        with patch('roster_import.services.progress.is_tty_enabled', return_value=True), \
             patch('roster_import.services.progress.tqdm', return_value=mock_pbar):

            with ProgressTracker(3) as tracker:
                assert isinstance(tracker, ProgressTracker)

            mock_pbar.close.assert_called_once()
            assert tracker.pbar is None
