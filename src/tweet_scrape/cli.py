"""CLI interface for tweet-scrape.

Commands:
    init      - Write a config file with default settings
    search    - Stream tweets matching a search query
    timeline  - Stream tweets from a user's timeline
    tweet     - Scrape a single tweet by id
    profile   - Scrape a user profile
    parse     - Extract tweets from a saved HTML file
    status    - Show config and stored feed cursors
"""

import json
import sys
from contextlib import nullcontext
from pathlib import Path

import click

from .config import (
    CONFIG_FILE,
    OUTPUT_FORMATS,
    AppConfig,
    config_exists,
    load_config,
    save_config,
)
from .errors import ScrapeError
from .logging_config import setup_logging


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _feed_options(func):
    """Options shared by the feed commands."""
    options = [
        click.option("-n", "--limit", type=int, default=None, help="Maximum number of tweets"),
        click.option("-o", "--output", type=click.Path(), default=None, help="Output file"),
        click.option(
            "--format",
            "output_format",
            type=click.Choice(OUTPUT_FORMATS),
            default=None,
            help="Output format (default from config)",
        ),
        click.option("--max-retries", type=int, default=None, help="Consecutive failures tolerated"),
        click.option("--strict", is_flag=True, help="Drop tweets that fail validation"),
        click.option(
            "--dump-raw",
            type=click.Path(),
            default=None,
            help="Save raw API JSON responses to file for debugging",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", type=click.Path(), default=None, help="Config file path")
@click.pass_context
def main(ctx, verbose, config):
    """Tweet Scraper — Extract tweets and profiles from Twitter's web pages."""
    setup_logging(debug=verbose)
    ctx.ensure_object(dict)
    config_path = Path(config) if config else CONFIG_FILE
    ctx.obj["config_path"] = config_path
    try:
        ctx.obj["config"] = load_config(config_path)
    except ScrapeError as e:
        _fail(str(e))


def _make_client(config: AppConfig, capture_raw: bool = False):
    from .client import TwitterClient

    return TwitterClient(
        user_agent=config.user_agent,
        timeout=config.timeout,
        capture_raw=capture_raw,
    )


def _run_feed(ctx, build_stream, limit, output, output_format, max_retries, strict, dump_raw):
    """Write the tweets of `build_stream(client, **options)` to the output.

    Returns the finished stream so callers can read its cursors.
    """
    from .converter import tweets_to_csv, tweets_to_jsonl
    from .validation import is_valid_tweet, tweet_problems

    config: AppConfig = ctx.obj["config"]
    output_format = output_format or config.output_format

    def report_invalid(tweet):
        click.echo(
            f"Skipping tweet {tweet.tweet_id}: {'; '.join(tweet_problems(tweet))}",
            err=True,
        )

    options = {
        "limit": limit,
        "max_retries": config.max_retries if max_retries is None else max_retries,
        "retry_delay": config.fetch_delay,
    }
    if strict:
        options["valid"] = is_valid_tweet
        options["on_invalid"] = report_invalid

    out_ctx = open(output, "w", encoding="utf-8", newline="") if output else nullcontext(sys.stdout)

    try:
        with _make_client(config, capture_raw=bool(dump_raw)) as client, out_ctx as out:
            stream = build_stream(client, **options)
            if output_format == "csv":
                tweets = list(stream)
                tweets_to_csv(tweets, out)
                count = len(tweets)
            else:
                count = tweets_to_jsonl(stream, out)

            if dump_raw:
                Path(dump_raw).write_text(
                    json.dumps(client.raw_responses, indent=2, ensure_ascii=False),
                    encoding="utf-8",
                )
                click.echo(f"Raw API responses saved to {dump_raw}", err=True)
    except ScrapeError as e:
        _fail(str(e))

    click.echo(f"Scraped {count} tweets.", err=True)
    return stream


@main.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init(ctx, force):
    """Write a config file with default settings."""
    config_path = ctx.obj["config_path"]
    if config_exists(config_path) and not force:
        _fail(f"Config already exists at {config_path}. Use --force to overwrite.")

    save_config(AppConfig(), config_path)
    click.echo(f"Config saved to {config_path}")


@main.command()
@click.argument("query")
@click.option("--top", is_flag=True, help="Scrape top tweets instead of latest")
@click.option("--from-id", default=None, help="Only tweets older than this id")
@click.option("--until-id", default=None, help="Stop at tweets older than this id")
@_feed_options
@click.pass_context
def search(ctx, query, top, from_id, until_id, **feed):
    """Stream tweets matching QUERY."""
    from .streams import search as search_stream

    def build(client, **options):
        return search_stream(
            client, query, latest=not top, from_id=from_id, until_id=until_id, **options
        )

    _run_feed(ctx, build, **feed)


@main.command()
@click.argument("username")
@click.option("--after", default=None, help="Only tweets newer than this id")
@click.option("--before", default=None, help="Only tweets older than this id")
@click.option(
    "--resume", is_flag=True, help="Continue after the newest tweet of the last run"
)
@_feed_options
@click.pass_context
def timeline(ctx, username, after, before, resume, **feed):
    """Stream tweets from USERNAME's timeline."""
    from .state import CursorStore
    from .streams import timeline as timeline_stream

    config: AppConfig = ctx.obj["config"]
    store = CursorStore(config.state_dir)
    feed_key = f"timeline:{username.lower()}"

    if resume:
        if after or before:
            _fail("--resume cannot be combined with --after or --before.")
        after = store.last_max(feed_key)
        if after:
            click.echo(f"Resuming after cursor {after}", err=True)

    def build(client, **options):
        return timeline_stream(client, username, after=after, before=before, **options)

    stream = _run_feed(ctx, build, **feed)

    store.update(feed_key, stream.get_min(), stream.get_max())
    store.save()


@main.command()
@click.argument("tweet_id")
@click.option("--html", "include_html", is_flag=True, help="Include the tweet markup")
@click.pass_context
def tweet(ctx, tweet_id, include_html):
    """Scrape a single tweet by TWEET_ID."""
    from .converter import tweet_to_dict
    from .validation import valid_id

    if not valid_id(tweet_id):
        _fail(f"Not a valid tweet id: '{tweet_id}'")

    try:
        with _make_client(ctx.obj["config"]) as client:
            result = client.get_tweet(tweet_id)
    except ScrapeError as e:
        _fail(str(e))

    click.echo(json.dumps(tweet_to_dict(result, include_html), indent=2, ensure_ascii=False))


@main.command()
@click.argument("user")
@click.option("--id", "by_id", is_flag=True, help="Treat USER as a numeric user id")
@click.option("--full", is_flag=True, help="Scrape the full profile page")
@click.option("--html", "include_html", is_flag=True, help="Include the profile markup")
@click.pass_context
def profile(ctx, user, by_id, full, include_html):
    """Scrape the profile of USER (a screen name, or an id with --id)."""
    from .converter import profile_to_dict

    if full and by_id:
        _fail("--full needs a screen name, not an id.")

    try:
        with _make_client(ctx.obj["config"]) as client:
            if full:
                result = client.get_full_profile(user)
            elif by_id:
                result = client.get_profile(user_id=user)
            else:
                result = client.get_profile(username=user)
    except ScrapeError as e:
        _fail(str(e))

    click.echo(json.dumps(profile_to_dict(result, include_html), indent=2, ensure_ascii=False))


@main.command()
@click.argument("input_file", type=click.Path(exists=True))
@click.option("-o", "--output", type=click.Path(), default=None, help="Output CSV file path")
def parse(input_file, output):
    """Extract tweets from a saved HTML page and write them as CSV.

    INPUT_FILE is the path to the HTML file to parse.
    If -o is not specified, CSV is written to stdout.
    """
    from .converter import tweets_to_csv
    from .markup import select_all
    from .paginator import ITEM_SELECTOR
    from .parser import parse_tweets

    content = Path(input_file).read_text(encoding="utf-8")
    tweets = parse_tweets(select_all(content, ITEM_SELECTOR), ITEM_SELECTOR)

    if not tweets:
        _fail("No tweets found in input file.")

    click.echo(f"Parsed {len(tweets)} tweets.", err=True)

    if output:
        output_path = Path(output)
        with open(output_path, "w", encoding="utf-8", newline="") as f:
            tweets_to_csv(tweets, f)
        click.echo(f"CSV written to {output_path}", err=True)
    else:
        click.echo(tweets_to_csv(tweets), nl=False)


@main.command()
@click.pass_context
def status(ctx):
    """Show config and stored feed cursors."""
    from .state import CursorStore

    config_path = ctx.obj["config_path"]
    config: AppConfig = ctx.obj["config"]

    click.echo("Tweet Scraper — Status")
    click.echo("=" * 40)
    click.echo(
        f"Config: {'Found' if config_exists(config_path) else 'Defaults'} ({config_path})"
    )
    click.echo(f"Output format: {config.output_format}")
    click.echo(f"Max retries: {config.max_retries}")

    store = CursorStore(config.state_dir)
    if not store.feeds:
        click.echo("No feeds scraped yet.")
        return

    for feed in store.feeds:
        entry = store.get(feed)
        click.echo(f"{feed}: max={entry.get('max')} last_fetch={entry.get('last_fetch')}")
