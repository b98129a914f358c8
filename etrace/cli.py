# etrace/cli.py - Command-line interface
"""
Command-line interface for etrace.
"""

import click
import sys
import logging

from etrace.utils.logger import setup_logging
from etrace.utils.config import Config, ProcessorOptions
from etrace.errors import ConfigurationError


OUTPUT_FORMATS = ['stdout', 'json', 'prometheus']


def create_sink(output_format: str, output_path=None, use_colors: bool = True):
    """
    Create the report sink for an output format.

    Args:
        output_format: One of OUTPUT_FORMATS
        output_path: Output file for json/prometheus (default: stdout)
        use_colors: Colored console output (stdout format only)

    Returns:
        ReportSink instance
    """
    if output_format == 'json':
        from etrace.exporters.json_exporter import JSONExporter
        return JSONExporter(output_path)
    if output_format == 'prometheus':
        from etrace.exporters.prometheus import PrometheusExporter
        return PrometheusExporter(output_path)
    if output_format == 'stdout':
        from etrace.exporters.stdout import StdoutExporter
        return StdoutExporter(use_colors=use_colors)

    raise ConfigurationError(f"Unknown output format: {output_format}")


@click.group()
@click.option('--log-level', default='INFO', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']))
@click.option('--log-file', type=click.Path(), help='Log file path')
@click.pass_context
def cli(ctx, log_level, log_file):
    """
    etrace - trace event statistics and HTTP latency

    Replays recorded trace events through counting, correlating and
    printing processors.
    """
    ctx.ensure_object(dict)

    setup_logging(level=log_level, log_file=log_file)

    ctx.obj['log_level'] = log_level
    ctx.obj['log_file'] = log_file


def _load_config(config, http_stats, http_latency, stats, fields, filters,
                 output_format=None, output=None) -> Config:
    cfg = Config(config)

    # Override config with CLI options
    if http_stats:
        cfg.set('processing.http_stats_only', True)
    if http_latency:
        cfg.set('processing.http_latency_stats_only', True)
    if stats:
        cfg.set('processing.stats_only', True)
    if fields:
        cfg.set('processing.fields', [f.strip() for f in fields.split(',') if f.strip()])
    if filters:
        cfg.set('processing.filters', list(filters))
    if output_format:
        cfg.set('output.format', output_format)
    if output:
        cfg.set('output.path', output)

    return cfg


@cli.command()
@click.argument('events', type=click.File('rb'))
@click.option('--config', type=click.Path(exists=True), help='Configuration file')
@click.option('--http-stats', is_flag=True, help='Count HTTP calls by URI and process')
@click.option('--http-latency', is_flag=True, help='Report latency of each HTTP call')
@click.option('--stats', is_flag=True, help='Count events by name and process')
@click.option('--fields', help='Comma-separated fields to print as a table, e.g. "EventName[30],ProcessID"')
@click.option('--filter', 'filters', multiple=True, help='Filter expression, e.g. ProcessId=1234')
@click.option('--output-format', type=click.Choice(OUTPUT_FORMATS), help='Output format')
@click.option('--output', type=click.Path(), help='Output file (json/prometheus formats)')
@click.option('--no-color', is_flag=True, help='Disable colored output')
@click.pass_context
def run(ctx, events, config, http_stats, http_latency, stats, fields, filters,
        output_format, output, no_color):
    """
    Process recorded events (JSON lines, '-' for stdin).

    Example:
        etrace run events.jsonl --stats
        etrace run events.jsonl --http-latency --filter ProcessId=1234
        etrace run - --fields "TimeStamp,EventName[40],ProcessID" < events.jsonl
    """
    from etrace.collector.event_handler import EventDispatcher
    from etrace.collector.processors import build_processors
    from etrace.collector.source import JsonLinesEventSource

    logger = logging.getLogger(__name__)

    try:
        cfg = _load_config(config, http_stats, http_latency, stats, fields, filters,
                           output_format, output)
        options = ProcessorOptions.from_config(cfg)
        sink = create_sink(cfg.get('output.format', 'stdout'), cfg.get('output.path'),
                           use_colors=not no_color)
        processors = build_processors(options, sink)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    source = JsonLinesEventSource(events)
    dispatcher = EventDispatcher(processors)

    try:
        dispatcher.run(source)
    except KeyboardInterrupt:
        logger.info("Interrupted, flushing results...")
    finally:
        sink.close()

    logger.info(f"Source: {source.get_stats()}")
    logger.info(f"Dispatcher: {dispatcher.get_stats()}")


@cli.command('config')
@click.option('--config', type=click.Path(exists=True), help='Configuration file')
@click.option('--http-stats', is_flag=True, help='Count HTTP calls by URI and process')
@click.option('--http-latency', is_flag=True, help='Report latency of each HTTP call')
@click.option('--stats', is_flag=True, help='Count events by name and process')
@click.option('--fields', help='Comma-separated fields to print as a table')
@click.option('--filter', 'filters', multiple=True, help='Filter expression, e.g. ProcessId=1234')
def show_config(config, http_stats, http_latency, stats, fields, filters):
    """
    Show the effective configuration.

    Example:
        etrace config --config etrace.yaml --http-latency
    """
    try:
        cfg = _load_config(config, http_stats, http_latency, stats, fields, filters)
        ProcessorOptions.from_config(cfg)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(cfg.to_yaml(), nl=False)


if __name__ == '__main__':
    cli(obj={})
