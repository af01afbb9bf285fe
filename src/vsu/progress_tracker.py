import time
from typing import TYPE_CHECKING, Optional

import click
from tqdm import tqdm

from .version_codec import format_version

if TYPE_CHECKING:
    from .orchestrator import RunStats


class ProgressTracker:
    """Progress bar over the candidate files plus the end-of-run summary."""

    def __init__(self, verbose: bool = False, enabled: bool = True):
        self.verbose = verbose
        self.enabled = enabled and not verbose
        self.progress: Optional[tqdm] = None

    def start(self, total: int, description: str = "🔢 Checking files"):
        if self.progress:
            self.progress.close()
        self.progress = tqdm(
            total=total,
            desc=description,
            unit="files",
            colour="blue",
            leave=False,
            disable=not self.enabled,
        )

    def advance(self, path: str = ""):
        if self.progress:
            if path and self.enabled:
                display = path if len(path) <= 40 else f"...{path[-37:]}"
                self.progress.set_postfix_str(display)
            self.progress.update(1)

    def show_summary(self, stats: "RunStats", report_path: Optional[str] = None, dry_run: bool = False):
        """Show final run statistics."""
        self.cleanup()
        elapsed_time = time.time() - stats.start_time

        title = "📈 Dry Run Summary" if dry_run else "📈 Version Summary"
        click.echo(f"\n{title}:")
        click.echo(f"   📄 Files processed: {stats.processed}")
        click.echo(f"   ⬆️ {'Would update' if dry_run else 'Updated'}: {stats.updated}")
        click.echo(f"   = Unchanged: {stats.unchanged}")
        click.echo(f"   ⚠️ Ignored: {stats.ignored}")
        click.echo(f"   ❌ Failed: {stats.failed}")
        click.echo(f"   📊 Average project version: {format_version(stats.average)}")
        click.echo(f"   ⏱️ Total time: {self._format_duration(elapsed_time)}")
        if report_path:
            click.echo(f"\n✅ Finished. Report: {report_path}")

    def cleanup(self):
        if self.progress:
            self.progress.close()
            self.progress = None

    def _format_duration(self, seconds: float) -> str:
        if seconds < 60:
            return f"{seconds:.1f}s"
        elif seconds < 3600:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes}m {secs}s"
        else:
            hours = int(seconds // 3600)
            minutes = int((seconds % 3600) // 60)
            return f"{hours}h {minutes}m"
