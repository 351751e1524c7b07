from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path
from typing import Awaitable, Callable, Optional

import typer
import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from ..core.generation_client import GenerationClient
from ..core.logging_utils import configure_logging
from ..core.model_config import load_model_config, use_mocks
from ..core.orchestrator import LeadMagnetOrchestrator, PipelineRun, QuizOrchestrator
from ..core.reporter import write_quiz_report
from ..core.stage_config import ConfigError, StageConfigLoader
from ..core.types import BrandProfile, GenerationContext

app = typer.Typer()


def _load_brand(path: Optional[Path]) -> Optional[BrandProfile]:
    if path is None:
        return None
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return BrandProfile(
        name=data.get("name", ""),
        description=data.get("description", ""),
        brand_voice=data.get("brand_voice", ""),
        target_audience=data.get("target_audience", ""),
        key_messages=tuple(data.get("key_messages") or ()),
    )


def _execute(
    config: Optional[Path],
    timeout: Optional[float],
    flow: Callable[[GenerationClient, StageConfigLoader, Optional[float]], Awaitable[PipelineRun]],
) -> PipelineRun:
    loader = StageConfigLoader(config) if config else StageConfigLoader()
    mocks = use_mocks()
    model = load_model_config(loader)
    if not model.is_available(mocks):
        typer.echo(f"❌ {model.api_key_env} not found in environment (or set LLM_LEAD_QUIZ_ENV=mock)", err=True)
        raise typer.Exit(1)
    try:
        settings = loader.get_client()
    except ConfigError as exc:
        typer.echo(f"❌ {exc}", err=True)
        raise typer.Exit(1)

    async def _go() -> PipelineRun:
        adapter = model.create_adapter(mocks)
        client = GenerationClient(
            adapter,
            retry_delay=settings.retry_delay_seconds,
            timeout=settings.timeout_seconds,
            max_token_budget=settings.max_token_budget,
            limiter=asyncio.Semaphore(settings.max_concurrency),
            default_params=model.default_params,
        )
        deadline = time.monotonic() + timeout if timeout else None
        try:
            return await flow(client, loader, deadline)
        finally:
            await adapter.aclose()

    typer.echo(f"🤖 Generating with {model.id}")
    return asyncio.run(_go())


def _finish(run: PipelineRun, out: Optional[Path], report: Optional[Path]) -> None:
    payload = json.dumps(run.to_dict(), indent=2, ensure_ascii=False)
    if out:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(payload, encoding="utf-8")
        typer.echo(f"📁 Output written to {out}")
    else:
        typer.echo(payload)
    if not run.ok:
        typer.echo(f"❌ {run.flow} run failed at stage '{run.failed_stage}': {run.error}", err=True)
        raise typer.Exit(1)
    if report and run.quiz is not None:
        write_quiz_report(run.quiz, report)
        typer.echo(f"📊 Report written to {report}")
    typer.echo(f"✅ Done ({', '.join(f'{k}={v}' for k, v in run.attempts.items())} attempts)")


@app.command("quiz:generate")
def quiz_generate(
    topic: str,
    questions: int = 5,
    results: int = 3,
    audience: str = "",
    goal: str = "",
    niche: str = "general",
    voice: Optional[str] = None,
    brand: Optional[Path] = None,
    remap: bool = False,
    out: Optional[Path] = None,
    report: Optional[Path] = None,
    config: Optional[Path] = None,
    timeout: Optional[float] = None,
    log_file: Optional[Path] = None,
) -> None:
    """Generate a whole quiz in one call for TOPIC."""
    configure_logging(log_file)
    ctx = GenerationContext(
        audience=audience,
        goal=goal,
        niche=niche,
        topic=topic,
        brand_voice=voice,
        brand=_load_brand(brand),
        question_count=questions,
        result_count=results,
    )
    run = _execute(
        config,
        timeout,
        lambda client, loader, deadline: QuizOrchestrator(client, loader).run_unified(
            ctx, remap=remap, deadline=deadline
        ),
    )
    _finish(run, out, report)


@app.command("quiz:split")
def quiz_split(
    audience: str,
    goal: str,
    title: Optional[str] = None,
    niche: str = "general",
    questions: int = 8,
    results: int = 5,
    voice: Optional[str] = None,
    out: Optional[Path] = None,
    report: Optional[Path] = None,
    config: Optional[Path] = None,
    timeout: Optional[float] = None,
    log_file: Optional[Path] = None,
) -> None:
    """Generate questions, then results, then the answer mapping."""
    configure_logging(log_file)
    ctx = GenerationContext(
        audience=audience,
        goal=goal,
        niche=niche,
        quiz_title=title,
        brand_voice=voice,
        question_count=questions,
        result_count=results,
    )
    run = _execute(
        config,
        timeout,
        lambda client, loader, deadline: QuizOrchestrator(client, loader).run_split(ctx, deadline=deadline),
    )
    _finish(run, out, report)


@app.command("magnet:generate")
def magnet_generate(
    content_file: Path,
    username: str,
    slug: str,
    magnet_type: str = "guide",
    tone: str = "professional",
    audience: str = "",
    goal: str = "get_leads",
    pdf_url: Optional[str] = None,
    out: Optional[Path] = None,
    config: Optional[Path] = None,
    timeout: Optional[float] = None,
    log_file: Optional[Path] = None,
) -> None:
    """Generate a lead magnet from already scraped website text in CONTENT_FILE."""
    configure_logging(log_file)
    ctx = GenerationContext(
        audience=audience,
        goal=goal,
        business_content=content_file.read_text(encoding="utf-8"),
        magnet_type=magnet_type,
        tone=tone,
        username=username,
        slug=slug,
        pdf_url=pdf_url,
    )
    run = _execute(
        config,
        timeout,
        lambda client, loader, deadline: LeadMagnetOrchestrator(client, loader).run(ctx, deadline=deadline),
    )
    _finish(run, out, None)


@app.command("stages")
def list_stages(config: Optional[Path] = None) -> None:
    """Show the effective per-stage budgets and client settings."""
    loader = StageConfigLoader(config) if config else StageConfigLoader()
    try:
        stages = loader.all_stages()
        client = loader.get_client()
    except ConfigError as exc:
        typer.echo(f"❌ {exc}", err=True)
        raise typer.Exit(1)
    model = load_model_config(loader)
    status = "✅" if model.is_available(use_mocks()) else "❌"
    typer.echo(f"{status} provider: {model.id}")
    typer.echo(
        f"⚙️  client: retry_delay={client.retry_delay_seconds}s timeout={client.timeout_seconds}s "
        f"max_token_budget={client.max_token_budget} max_concurrency={client.max_concurrency}"
    )
    for name, settings in stages.items():
        typer.echo(f"  • {name}: token_budget={settings.token_budget} max_attempts={settings.max_attempts}")


if __name__ == "__main__":
    app()
