"""Rich console output and markdown file save for council results."""

import logging
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from src.models import Answer, CouncilResult

logger = logging.getLogger(__name__)

console = Console(legacy_windows=False)


def _slug(text: str, max_len: int = 40) -> str:
    """Convert text to a filename-safe slug."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"[\s_-]+", "-", slug).strip("-")
    return slug[:max_len]


def _answer_preview(answer: Answer, words: int = 50) -> str:
    """Return first N words of an answer."""
    all_words = answer.text.split()
    preview = " ".join(all_words[:words])
    if len(all_words) > words:
        preview += "..."
    return preview


def print_transcripts(answers: list[Answer]) -> None:
    """Print a brief preview of every collected answer."""
    console.print(Rule("[bold cyan]Member Answers[/bold cyan]"))
    for i, answer in enumerate(answers, start=1):
        console.print(
            Panel(
                _answer_preview(answer),
                title=f"[bold]{i}. {answer.member.label}[/bold] ({answer.member.model})",
                border_style="dim",
            )
        )


def print_scoreboard(result: CouncilResult) -> None:
    """Print the ranking and score table."""
    table = Table(title=f"Ranking ({result.ranking.reason or 'no reason given'})")
    table.add_column("#", justify="right")
    table.add_column("Member")
    table.add_column("Score", justify="right")
    table.add_column("Share", justify="right")
    table.add_column("Confidence", justify="right")
    for i, answer in enumerate(result.answers, start=1):
        style = "bold green" if i == result.table.best_index else None
        table.add_row(
            str(i),
            answer.member.label,
            f"{result.table.scores[i - 1]:.2f}",
            f"{result.table.percentages[i - 1]}%",
            f"{result.table.avg_confidences[i - 1]:.2f}",
            style=style,
        )
    console.print(table)


def print_final(result: CouncilResult) -> None:
    """Print the final answer using Rich markdown."""
    console.print(Rule("[bold green]Council Answer[/bold green]"))
    source = "synthesized" if result.synthesized else "best answer verbatim"
    console.print(
        Text(
            f"Chairman: {result.chairman} | "
            f"Best: {result.best_answer.member.label} | "
            f"Members: {len(result.answers)}/{len(result.attempted)} | "
            f"Duration: {result.total_duration_sec:.1f}s | "
            f"Final: {source}",
            style="dim",
        )
    )
    console.print(Markdown(result.final))


def save_to_file(result: CouncilResult, output_dir: Path) -> Path:
    """Save the full council transcript as a markdown file.

    Returns:
        Path to the saved file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = f"{timestamp}_{_slug(result.prompt)}.md"
    filepath = output_dir / filename

    used = {a.member.label for a in result.answers}
    silent = [label for label in result.attempted if label not in used]

    lines: list[str] = [
        f"# Model Council: {result.prompt[:80]}",
        "",
        f"**Date:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"**Chairman:** {result.chairman}",
        f"**Members used:** {len(result.answers)}/{len(result.attempted)}",
        f"**No answer:** {', '.join(silent) if silent else 'none'}",
        f"**Ranking:** {result.ranking.order} ({result.ranking.reason})",
        f"**Best:** {result.table.best_index}. {result.best_answer.member.label}",
        f"**Duration:** {result.total_duration_sec:.1f}s",
    ]
    if result.jurors:
        lines.append(f"**Jurors:** {', '.join(result.jurors)}")
    lines += ["", "---", "", "## Answers", ""]

    for i, answer in enumerate(result.answers, start=1):
        lines.append(f"### {i}. {answer.member.label} ({answer.member.model})")
        lines.append("")
        lines.append(answer.text)
        lines.append("")
        lines.append(
            f"*Score: {result.table.scores[i - 1]:.2f} | "
            f"Share: {result.table.percentages[i - 1]}% | "
            f"Confidence: {result.table.avg_confidences[i - 1]:.2f}*"
        )
        lines.append("")

    heading = "Final Answer" if result.synthesized else "Final Answer (best answer, synthesis failed)"
    lines += [f"## {heading}", "", result.final, ""]

    filepath.write_text("\n".join(lines), encoding="utf-8")
    logger.info("Council result saved to: %s", filepath)
    return filepath
