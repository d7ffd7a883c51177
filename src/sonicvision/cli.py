"""CLI entry point for Sonic Vision."""

import asyncio
import logging
import mimetypes
import shutil
import typer
from pathlib import Path
from typing import Optional

from . import __version__
from .models import STEPS, Status
from .services.credentials import CredentialStore

app = typer.Typer(
    name="sonic-vision",
    help="Turn an audio clip into a looping AI-generated video",
    no_args_is_help=True
)

# Extensions the platform's mimetypes table may not know
_AUDIO_TYPES = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sonic-vision version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Sonic Vision - Listen to a track, dream up a scene, render it with Veo."""
    pass


def guess_mime_type(path: Path) -> str:
    """Return the audio MIME type for a file path."""
    known = _AUDIO_TYPES.get(path.suffix.lower())
    if known:
        return known
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "application/octet-stream"


def show_step(status: Status) -> None:
    """Print the step indicator for a status."""
    labels = []
    for step_status, label in STEPS:
        labels.append(f"[{label}]" if step_status == status else label)
    typer.echo("   " + " → ".join(labels))


def ensure_credentials(credentials: CredentialStore) -> None:
    """Make sure a credential is selected, prompting for an API key if needed."""
    if credentials.has_selected_key():
        return

    if credentials.use_vertex:
        typer.echo("❌ GOOGLE_CLOUD_PROJECT environment variable not set")
        raise typer.Exit(1)

    typer.echo("🔑 Veo needs a paid Google Cloud project API key.")
    typer.echo("   Read more: https://ai.google.dev/gemini-api/docs/billing")
    api_key = typer.prompt("Gemini API key", hide_input=True)
    try:
        credentials.select_key(api_key)
    except ValueError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)


def analyze_file(coordinator, audio: Path) -> None:
    """Select an audio file and wait for the scene description."""
    try:
        data = audio.read_bytes()
    except OSError as e:
        typer.echo(f"❌ Error reading audio: {e}")
        raise typer.Exit(1)

    typer.echo(f"🎧 Listening & dreaming: {audio.name}")
    asyncio.run(coordinator.select_file(audio.name, guess_mime_type(audio), data))

    if coordinator.status != Status.REVIEW:
        typer.echo(f"❌ {coordinator.error_message or 'Analysis did not complete'}")
        raise typer.Exit(1)


def review_prompt(coordinator, yes: bool) -> bool:
    """Let the user accept, edit or cancel the prompt.

    Returns:
        True if the user wants to generate.
    """
    typer.echo("\n📝 Generated prompt for Veo:")
    typer.echo(f"   {coordinator.prompt}")

    if yes:
        return True

    while True:
        choice = typer.prompt(
            "\nGenerate video? [y]es / [e]dit / [n]o", default="y"
        ).strip().lower()[:1]

        if choice == "y":
            return True
        if choice == "n":
            return False
        if choice == "e":
            edited = typer.edit(coordinator.prompt)
            if edited is None:
                typer.echo("   Prompt unchanged")
            elif not coordinator.edit_prompt(edited.strip()):
                typer.echo("⚠️  Prompt cannot be empty, keeping the previous one")
            else:
                typer.echo(f"   {coordinator.prompt}")


@app.command()
def analyze(
    audio: Path = typer.Argument(
        ...,
        help="Audio file to analyze (MP3 or WAV)",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging"
    ),
) -> None:
    """Describe a visual scene for an audio clip without rendering it."""
    from .workflow import build_coordinator

    setup_logging(verbose)
    credentials = CredentialStore()
    ensure_credentials(credentials)

    try:
        coordinator = build_coordinator(credentials=credentials)
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    try:
        analyze_file(coordinator, audio)
        typer.echo(coordinator.prompt)
    finally:
        coordinator.reset()


@app.command()
def create(
    audio: Path = typer.Argument(
        ...,
        help="Audio file to visualize (MP3 or WAV, max 8MB)",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    output: Path = typer.Option(
        Path("output/sonic-vision-loop.mp4"),
        "--output",
        "-o",
        help="Where to save the generated clip"
    ),
    prompt: Optional[str] = typer.Option(
        None,
        "--prompt",
        "-p",
        help="Replace the generated prompt before rendering"
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Accept the prompt and render without asking"
    ),
    render: bool = typer.Option(
        True,
        "--render/--no-render",
        help="Also render the clip looped under the full audio track"
    ),
    fade_audio_out: float = typer.Option(
        2.0,
        "--fade-audio",
        help="Audio fade out duration at end of the loop (seconds)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging"
    ),
) -> None:
    """Analyze an audio clip, review the prompt and render a looping video."""
    from .workflow import build_coordinator

    setup_logging(verbose)
    credentials = CredentialStore()
    ensure_credentials(credentials)

    try:
        coordinator = build_coordinator(credentials=credentials)
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    try:
        show_step(coordinator.status)
        analyze_file(coordinator, audio)
        show_step(coordinator.status)

        if prompt:
            coordinator.edit_prompt(prompt)

        while True:
            if not review_prompt(coordinator, yes):
                typer.echo("Cancelled")
                raise typer.Exit(0)

            typer.echo("\n⏳ Veo is rendering your scene. This usually takes about 1-2 minutes...")
            asyncio.run(coordinator.generate())
            show_step(coordinator.status)

            if coordinator.status == Status.COMPLETED:
                break

            typer.echo(f"❌ {coordinator.error_message or 'Video generation failed'}")
            if coordinator.status != Status.REVIEW or yes:
                raise typer.Exit(1)
            if not typer.confirm("Try again?", default=True):
                raise typer.Exit(1)
            coordinator.clear_error()

        result = coordinator.result
        output.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(result.resource.path, output)
        typer.echo(f"✅ Video saved: {output}")

        if render:
            from .editor import render_loop

            loop_path = output.with_name(f"{output.stem}_loop.mp4")
            typer.echo(f"   Looping video under {audio.name}...")
            try:
                render_loop(
                    output,
                    coordinator.audio.resource.path,
                    loop_path,
                    fade_out_duration=fade_audio_out,
                )
                typer.echo(f"✅ Audio + video loop: {loop_path}")
            except Exception as e:
                typer.echo(f"⚠️  Error rendering loop: {e}")

    finally:
        coordinator.reset()


if __name__ == "__main__":
    app()
