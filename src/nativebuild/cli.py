"""CLI for the nativebuild build pipeline."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .builders import builder_types
from .config import BuildConfiguration, Mode, host_arch, host_platform, load_project
from .embed import find_embed_details
from .errors import BuildError
from .hooks import POST, PRE, HookExecutor
from .log_config import setup_logging
from .pipeline import BuildPipeline


console = Console()


def _print_plain(msg: str) -> None:
    console.print(msg, markup=False, highlight=False)


def parse_targets(value: Optional[str]) -> list[tuple[str, str]]:
    """Parse ``"linux/amd64,darwin/universal"`` into (platform, arch) pairs."""
    if not value:
        return [(host_platform(), host_arch())]
    targets = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        platform, _, arch = item.partition("/")
        targets.append((platform, arch or host_arch()))
    return targets


@click.group()
@click.version_option(version=__version__, prog_name="nativebuild")
def cli():
    """nativebuild – build orchestration for native desktop applications."""
    pass


@cli.command()
@click.argument("project_path", default=".", type=click.Path(exists=True))
@click.option("--platform", "-p", "platforms", help="Targets as platform/arch, comma separated")
@click.option("--output-type", default="desktop", help=f"Output type ({', '.join(builder_types())})")
@click.option("--mode", type=click.Choice([m.value for m in Mode]), default=Mode.PRODUCTION.value)
@click.option("--compiler", default="go", help="Compiler command")
@click.option("--ldflags", default="", help="Extra linker flags")
@click.option("--tags", default="", help="Build tags, comma or space separated")
@click.option("--verbosity", "-v", default=1, type=click.IntRange(0, 2), help="0 silent, 1 default, 2 verbose")
@click.option("--pack/--no-pack", default=False, help="Package the application after compiling")
@click.option("--upx", is_flag=True, help="Compress the binary with UPX")
@click.option("--upxflags", default="", help="Flags passed to UPX")
@click.option("--output", "-o", "output_file", default="", help="Output filename")
@click.option("--clean", is_flag=True, help="Clean the bin directory before building")
@click.option("--skip-frontend", "-s", is_flag=True, help="Skip the frontend build")
@click.option("--skip-bindings", is_flag=True, help="Skip bindings generation")
@click.option("--skip-mod-tidy", is_flag=True, help="Skip dependency tidy")
@click.option("--obfuscated", is_flag=True, help="Obfuscate the binary and bindings")
@click.option("--garbleargs", default="-literals -tiny -seed=random", help="Arguments for garble")
@click.option("--trimpath", is_flag=True, help="Remove file system paths from the binary")
@click.option("--race", is_flag=True, help="Build with the race detector")
@click.option("--windowsconsole", is_flag=True, help="Keep the console window on Windows")
@click.option("--webview2", "webview2_strategy", type=click.Choice(["download", "embed", "browser", "error"]), default=None, help="WebView2 runtime strategy (Windows)")
@click.option("--forcebuild", is_flag=True, help="Force rebuilding of all packages")
@click.option("--keep-assets", is_flag=True, help="Keep generated assets")
@click.option("--timeout", type=float, default=None, help="Timeout in seconds for each external command")
def build(
    project_path: str,
    platforms: Optional[str],
    output_type: str,
    mode: str,
    compiler: str,
    ldflags: str,
    tags: str,
    verbosity: int,
    pack: bool,
    upx: bool,
    upxflags: str,
    output_file: str,
    clean: bool,
    skip_frontend: bool,
    skip_bindings: bool,
    skip_mod_tidy: bool,
    obfuscated: bool,
    garbleargs: str,
    trimpath: bool,
    race: bool,
    windowsconsole: bool,
    webview2_strategy: Optional[str],
    forcebuild: bool,
    keep_assets: bool,
    timeout: Optional[float],
):
    """Build the project for one or more targets."""
    setup_logging(verbosity)
    on_log = None if verbosity == 0 else _print_plain
    try:
        project = load_project(project_path)
        targets = parse_targets(platforms)
        for i, (platform, arch) in enumerate(targets):
            options = {
                "output_type": output_type,
                "mode": mode,
                "platform": platform,
                "arch": arch,
                "compiler": compiler,
                "ld_flags": ldflags,
                "user_tags": tags,
                "verbosity": verbosity,
                "pack": pack,
                "compress": upx,
                "compress_flags": upxflags,
                "output_file": output_file,
                "clean_bin_dir": clean and i == 0,
                "skip_frontend": skip_frontend or i > 0,
                "skip_bindings": skip_bindings or i > 0,
                "skip_mod_tidy": skip_mod_tidy,
                "obfuscated": obfuscated,
                "garble_args": garbleargs,
                "trim_path": trimpath,
                "race_detector": race,
                "windows_console": windowsconsole,
                "webview2_strategy": webview2_strategy or "",
                "force_build": forcebuild,
                "keep_assets": keep_assets,
            }
            if timeout is not None:
                options["command_timeout"] = timeout
            config = BuildConfiguration.from_dict(options, project=project)

            if verbosity:
                console.print(f"[bold]Building {escape(project.name)} for {escape(config.target)}[/bold]")
            compiled = BuildPipeline(config, on_log=on_log).run()
            if verbosity:
                if compiled:
                    console.print(f"[green]✓ Built '{escape(str(compiled))}'[/green]")
                else:
                    console.print("[green]✓ Done (application compile skipped)[/green]")
    except (BuildError, FileNotFoundError, OSError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("project_path", default=".", type=click.Path(exists=True))
@click.option("--platform", "-p", "platforms", help="Targets as platform/arch, comma separated")
def hooks(project_path: str, platforms: Optional[str]):
    """Show declared build hooks and which one runs for each target."""
    try:
        project = load_project(project_path)
        executor = HookExecutor(project, bin_dir=project.build_dir / "bin")

        table = Table(title=f"Build hooks: {project.name}")
        table.add_column("Target")
        table.add_column("Phase")
        table.add_column("Key")
        table.add_column("Command")
        for platform, arch in parse_targets(platforms):
            for phase in (PRE, POST):
                invocation = executor.resolve(phase, platform, arch)
                if invocation is None:
                    table.add_row(f"{platform}/{arch}", phase, "-", "[dim](none)[/dim]")
                else:
                    table.add_row(f"{platform}/{arch}", phase, escape(invocation.key), escape(" ".join(invocation.template)))
        console.print(table)
    except (BuildError, FileNotFoundError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


@cli.command()
@click.argument("project_path", default=".", type=click.Path(exists=True))
def embeds(project_path: str):
    """List embed directories and whether they exist."""
    try:
        project = load_project(project_path)
        details = find_embed_details(project.path)
        if not details:
            console.print("[dim]No embed directives found[/dim]")
            return
        for detail in details:
            mark = "[green]✓[/green]" if detail.full_path.exists() else "[yellow]missing[/yellow]"
            console.print(f"  {mark} {escape(str(detail.full_path))}")
    except (BuildError, FileNotFoundError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


def main(argv=None):
    """Main entry point."""
    cli(argv)


if __name__ == "__main__":
    main()
