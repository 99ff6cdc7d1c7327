"""
Stealth Scraper - CLI Entry Point

Scrape pages with a stealth browser session and export the extracted content.
"""

import asyncio
import argparse
import logging
import sys
from pathlib import Path
from typing import List

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from stealthscraper.browser import PlaywrightLauncher
from stealthscraper.config import ScraperConfig
from stealthscraper.errors import ScraperError
from stealthscraper.models import ExtractedContent, ScrapeOptions
from stealthscraper.orchestrator import ScrapeCoordinator
from stealthscraper.pipeline.exporters import create_exporter


console = Console()


def setup_logging(level: str = "INFO") -> None:
    """Configure logging with rich handler."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def load_urls_from_file(filepath: str) -> list[str]:
    """Load URLs from a text file (one per line)."""
    path = Path(filepath)
    if not path.exists():
        console.print(f"[red]File not found: {filepath}[/red]")
        sys.exit(1)

    urls = []
    with open(path, "r") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                urls.append(line)

    return urls


def build_options(args: argparse.Namespace) -> ScrapeOptions:
    """Translate CLI flags into scrape options."""
    return ScrapeOptions(
        extract_text=args.text,
        extract_images=args.images,
        extract_links=args.links,
        bypass_anti_bot=args.bypass_anti_bot,
        use_proxy=args.use_proxy or bool(args.proxy_url),
        wait_time=args.wait_time,
        scroll_to_bottom=args.scroll,
        human_behavior=args.human,
        stealth_mode=args.stealth,
        proxy_url=args.proxy_url,
    )


def build_settings(args: argparse.Namespace) -> ScraperConfig:
    """Environment-backed configuration with CLI overrides applied."""
    settings = ScraperConfig(log_level=args.log_level)

    if args.download_dir:
        settings.storage.download_dir = Path(args.download_dir)
    if args.export_dir:
        settings.storage.export_dir = Path(args.export_dir)
    if args.proxies:
        settings.proxy.proxy_file = args.proxies
        settings.proxy.enabled = True
    if args.headless:
        settings.browser.headless = True

    return settings


def print_summary(content: ExtractedContent) -> None:
    """Print a short table describing one result."""
    table = Table(title=content.url, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Title", content.title or "-")
    table.add_row("Language", content.language)
    table.add_row("Text length", str(len(content.text_content)))
    table.add_row("Headings", str(len(content.headings)))
    table.add_row("Links", str(len(content.links)))
    table.add_row("Images", str(len(content.images)))
    table.add_row("Downloaded images", str(len(content.downloaded_images or [])))
    table.add_row("Emails", ", ".join(sorted(content.contact_info.emails)) or "-")
    table.add_row("Phones", ", ".join(sorted(content.contact_info.phones)) or "-")
    table.add_row("CAPTCHA detected", "[red]yes[/red]" if content.captcha_detected else "no")

    report = content.extraction_report
    if not report.is_complete:
        table.add_row("Degraded fields", f"[yellow]{', '.join(report.degraded_fields)}[/yellow]")

    console.print(table)


async def run_scrapes(
    coordinator: ScrapeCoordinator,
    urls: List[str],
    options: ScrapeOptions,
    workers: int = 1,
) -> tuple[List[ExtractedContent], int]:
    """
    Scrape every URL with at most ``workers`` sessions at once.

    A failed URL is reported as a structured error and never stops the others.

    Returns:
        Successful results in completion order, and the failure count
    """
    semaphore = asyncio.Semaphore(max(1, workers))
    results: List[ExtractedContent] = []
    failures = 0

    async def scrape_one(url: str) -> None:
        nonlocal failures
        async with semaphore:
            try:
                content = await coordinator.scrape(url, options)
            except ScraperError as e:
                failures += 1
                console.print_json(data={"url": url, **e.to_dict()})
                return
            except Exception as e:
                failures += 1
                error = ScraperError(f"{type(e).__name__}: {e}")
                console.print_json(data={"url": url, **error.to_dict()})
                return
        results.append(content)
        print_summary(content)

    await asyncio.gather(*(scrape_one(url) for url in urls))
    return results, failures


async def main_async(args: argparse.Namespace) -> int:
    """Async main function."""
    setup_logging(args.log_level)

    # Collect URLs
    urls = []

    if args.url:
        urls.append(args.url)

    if args.file:
        urls.extend(load_urls_from_file(args.file))

    if not urls:
        console.print("[red]No URLs provided. Use --url or --file[/red]")
        return 1

    settings = build_settings(args)
    options = build_options(args)

    console.print(f"\n[bold blue]Stealth Scraper[/bold blue]")
    console.print(f"URLs to process: {len(urls)}")
    console.print(f"Workers: {args.workers}")
    console.print(f"Export format: {args.format}")
    console.print()

    coordinator = ScrapeCoordinator(settings, launcher=PlaywrightLauncher(channel=args.channel))

    try:
        results, failures = await run_scrapes(coordinator, urls, options, args.workers)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        results, failures = [], 0

    if results:
        exporter = create_exporter(args.format, export_dir=settings.storage.export_dir)
        export_path = await exporter.export(results, filename=args.output)
        console.print(f"\n[green]Results exported to: {export_path}[/green]")

    # Print stats
    stats = coordinator.get_stats()
    console.print("\n[bold]Final Statistics:[/bold]")
    for key, value in stats.items():
        if key != "governor":
            console.print(f"  {key}: {value}")

    return 1 if failures and not results else 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Stealth Scraper - Browser-driven page extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --url https://example.com
  %(prog)s --url https://example.com --scroll --human --no-images
  %(prog)s --file urls.txt --workers 2 --format jsonl --proxies proxies.txt
        """,
    )

    # URL sources
    parser.add_argument(
        "--url", "-u",
        help="Single URL to scrape",
    )
    parser.add_argument(
        "--file", "-f",
        help="File containing URLs (one per line)",
    )

    # Extraction toggles
    parser.add_argument(
        "--text",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Extract page text (default: on)",
    )
    parser.add_argument(
        "--images",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Extract and download images (default: on)",
    )
    parser.add_argument(
        "--links",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Extract links (default: on)",
    )

    # Behavior
    parser.add_argument(
        "--bypass-anti-bot",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Apply evasion launch switches and page patches (default: on)",
    )
    parser.add_argument(
        "--stealth",
        action="store_true",
        help="Force stealth mode",
    )
    parser.add_argument(
        "--scroll",
        action="store_true",
        help="Scroll to the bottom before extracting",
    )
    parser.add_argument(
        "--human",
        action="store_true",
        help="Simulate mouse movement and scrolling",
    )
    parser.add_argument(
        "--wait-time",
        type=int,
        default=1000,
        help="Extra wait before extraction in ms (default: 1000)",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run the browser headless",
    )
    parser.add_argument(
        "--channel",
        help="Chromium distribution channel (e.g. chrome, msedge)",
    )

    # Execution options
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=1,
        help="Number of concurrent browser sessions (default: 1)",
    )

    # Proxy options
    parser.add_argument(
        "--proxy-url",
        help="Proxy URL for every request",
    )
    parser.add_argument(
        "--use-proxy",
        action="store_true",
        help="Route requests through the proxy pool",
    )
    parser.add_argument(
        "--proxies", "-p",
        help="File containing proxy URLs (one per line)",
    )

    # Output options
    parser.add_argument(
        "--format",
        choices=["json", "jsonl", "csv", "txt"],
        default="json",
        help="Export format (default: json)",
    )
    parser.add_argument(
        "--output", "-o",
        help="Output filename (auto-generated if not specified)",
    )
    parser.add_argument(
        "--download-dir",
        help="Directory for downloaded images",
    )
    parser.add_argument(
        "--export-dir",
        help="Directory for exported results",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    args = parser.parse_args()

    # Run async main
    sys.exit(asyncio.run(main_async(args)))


if __name__ == "__main__":
    main()
