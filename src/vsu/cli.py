import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click

from . import __version__
from .exceptions import ConfigurationError
from .history_log import HistoryLog
from .options import (
    RunOptions,
    normalize_extensions,
    split_list,
    validate_options,
)
from .orchestrator import RunOrchestrator
from .progress_tracker import ProgressTracker
from .utils import load_config, relative_display, setup_logging
from .version_codec import IncrementComponent


CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])


def build_options(app_config: Dict[str, Any], root: Path, **flags) -> RunOptions:
    """
    Combine config file values with command-line flags into RunOptions.

    Flags left at None fall back to the configuration.
    """
    scan = app_config.get('scan', {})
    versioning = app_config.get('versioning', {})
    markers = app_config.get('markers', {})
    state = app_config.get('state', {})

    if flags.get('ext'):
        extensions = normalize_extensions(flags['ext'])
    else:
        extensions = [str(x).strip() for x in (scan.get('extensions') or [])]

    mode = flags.get('increment_mode') or versioning.get('increment_mode', 'revision')
    try:
        increment = IncrementComponent.from_name(str(mode))
    except ValueError as e:
        raise ConfigurationError(str(e))

    def pick_max(name: str) -> int:
        value = flags.get(name)
        if value is None:
            value = versioning.get(name, 99)
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid integer for --{name.replace('_', '-')}: {value}")

    set_components = {}
    for component in IncrementComponent:
        value = flags.get(f'set_{component.value}')
        if value is not None:
            set_components[component] = value

    report_path = flags.get('report')
    if not report_path and scan.get('report_filename'):
        report_path = str(root / scan['report_filename'])

    prefixes = {}
    for ext, prefix in (markers.get('prefixes') or {}).items():
        ext = str(ext).strip().lower()
        prefixes[ext if ext.startswith('.') else '.' + ext] = str(prefix)

    return RunOptions(
        root=root,
        extensions=extensions,
        ignored_file=flags.get('ignored') or scan.get('ignored_file'),
        report_path=report_path,
        increment=increment,
        max_major=pick_max('max_major'),
        max_minor=pick_max('max_minor'),
        max_build=pick_max('max_build'),
        max_revision=pick_max('max_revision'),
        set_all_version=flags.get('set_all_version'),
        set_files=split_list(flags.get('set_files')),
        set_version=flags.get('set_version'),
        set_components=set_components,
        marker_prefixes=prefixes,
        default_marker_prefix=str(markers.get('default_prefix') or '//'),
        hashes_filename=state.get('hashes_filename', 'hashes.json'),
        history_filename=state.get('history_filename', 'version_history.json'),
        dry_run=bool(flags.get('dry_run')),
    )


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option('--path', '-p',
              type=click.Path(file_okay=False),
              help='Root folder to scan (default: current directory)')
@click.option('--ext', '-e',
              help='Comma-separated list of file extensions, e.g. .cs,.txt,.json (default: .cs)')
@click.option('--ignored', '-i',
              type=click.Path(dir_okay=False),
              help='Ignored patterns file (default: ignored.txt or ignored.json in the root)')
@click.option('--report', '-r',
              type=click.Path(dir_okay=False),
              help='Report file (default: version_raport.txt in the root)')
@click.option('--increment-mode',
              type=click.Choice(['major', 'minor', 'build', 'revision'], case_sensitive=False),
              help='Version component bumped when a change is detected (default: revision)')
@click.option('--max-major', type=int, help='Maximum MAJOR value, 0-999 (default: 99)')
@click.option('--max-minor', type=int, help='Maximum MINOR value, 0-999 (default: 99)')
@click.option('--max-build', type=int, help='Maximum BUILD value, 0-999 (default: 99)')
@click.option('--max-revision', type=int, help='Maximum REVISION value, 0-999 (default: 99)')
@click.option('--set-all-version', '-s',
              help='Set this exact version on ALL scanned files, ignoring content changes')
@click.option('--set-files', '-f',
              help='Comma-separated files (relative to the root) to set manually')
@click.option('--version', 'set_version',
              help='Exact version for the files given with --set-files')
@click.option('--set-major', type=click.IntRange(min=0), help='Set the MAJOR component manually')
@click.option('--set-minor', type=click.IntRange(min=0), help='Set the MINOR component manually')
@click.option('--set-build', type=click.IntRange(min=0), help='Set the BUILD component manually')
@click.option('--set-revision', type=click.IntRange(min=0), help='Set the REVISION component manually')
@click.option('--config', '-c',
              type=click.Path(exists=True, dir_okay=False),
              help='Configuration file path (default: vsu.yaml in the root)')
@click.option('--dry-run',
              is_flag=True,
              help='Show what would change without writing any file')
@click.option('--no-progress',
              is_flag=True,
              help='Disable the progress bar')
@click.option('--verbose', '-v',
              is_flag=True,
              help='Enable verbose logging')
def update(path: Optional[str],
           ext: Optional[str],
           ignored: Optional[str],
           report: Optional[str],
           increment_mode: Optional[str],
           max_major: Optional[int],
           max_minor: Optional[int],
           max_build: Optional[int],
           max_revision: Optional[int],
           set_all_version: Optional[str],
           set_files: Optional[str],
           set_version: Optional[str],
           set_major: Optional[int],
           set_minor: Optional[int],
           set_build: Optional[int],
           set_revision: Optional[int],
           config: Optional[str],
           dry_run: bool,
           no_progress: bool,
           verbose: bool):
    """
    Update version markers in files whose content changed.

    Scans a folder recursively for files with the given extensions and bumps
    the '// Version: x.x.x.x' line only if the rest of the file changed.
    New files receive '// Version: 1.0.0.0'.
    """
    try:
        root = Path(path) if path else Path.cwd()
        if not root.is_dir():
            click.echo(f"❌ Path does not exist: {root}", err=True)
            sys.exit(1)

        # Load configuration
        app_config = load_config(config, root=str(root))
        if verbose:
            app_config['logging']['level'] = 'DEBUG'

        # Setup logging
        setup_logging(app_config['logging'])

        try:
            options = build_options(
                app_config, root,
                ext=ext, ignored=ignored, report=report, increment_mode=increment_mode,
                max_major=max_major, max_minor=max_minor, max_build=max_build, max_revision=max_revision,
                set_all_version=set_all_version, set_files=set_files, set_version=set_version,
                set_major=set_major, set_minor=set_minor, set_build=set_build, set_revision=set_revision,
                dry_run=dry_run,
            )
            validate_options(options)
            progress = ProgressTracker(verbose=verbose, enabled=not no_progress)
            orchestrator = RunOrchestrator(options, progress=progress)
        except ConfigurationError as e:
            click.echo(f"❌ Invalid argument: {e}", err=True)
            click.echo("Run 'vsu update --help' for usage.", err=True)
            sys.exit(1)

        if dry_run:
            click.echo(f"🔍 Dry run mode - analyzing what would change in: {root}")

        try:
            stats = orchestrator.run()
        finally:
            progress.cleanup()

        if dry_run:
            for line in orchestrator.report.lines:
                click.echo(f"  {line}")
            progress.show_summary(stats, dry_run=True)
        else:
            progress.show_summary(stats, report_path=str(options.report_file))

    except KeyboardInterrupt:
        click.echo("\n⚠️  Update interrupted by user")
        sys.exit(1)
    except Exception as e:
        click.echo(f"❌ Error: {str(e)}")
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option('--path', '-p',
              type=click.Path(exists=True, file_okay=False),
              help='Root folder that holds the history file (default: current directory)')
@click.option('--file', 'file_filter',
              help='Only show entries whose path contains this text')
@click.option('--limit', '-n',
              type=click.IntRange(min=1),
              default=20,
              show_default=True,
              help='Show at most this many of the most recent entries')
@click.option('--config', '-c',
              type=click.Path(exists=True, dir_okay=False),
              help='Configuration file path (default: vsu.yaml in the root)')
def history(path: Optional[str], file_filter: Optional[str], limit: int, config: Optional[str]):
    """Show the recorded version history."""
    root = Path(path) if path else Path.cwd()
    app_config = load_config(config, root=str(root))
    filename = app_config.get('state', {}).get('history_filename', 'version_history.json')

    log = HistoryLog.load(root / filename, backup_corrupt=False)
    entries = log.for_file(file_filter) if file_filter else list(log)

    if not entries:
        click.echo("No version history found.")
        return

    shown = entries[-limit:]
    click.echo(f"📜 Version history ({len(shown)} of {len(entries)} entries)")
    click.echo("═" * 60)
    for entry in shown:
        when = entry.date.strftime('%Y-%m-%d %H:%M:%S')
        origin = "✋" if entry.type == "manual" else "🤖"
        display = relative_display(entry.file, root.resolve())
        click.echo(f"{when}  {origin} {display}: {entry.old_version} -> {entry.new_version}")


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="vsu")
def main():
    """vsu - keep '// Version' markers in source files in step with their content."""
    pass


main.add_command(update)
main.add_command(history)


if __name__ == '__main__':
    main()
