"""CLI entry points for the movie network explorer."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from movienet.config import BuilderConfig, Config, load_config
from movienet.db import NetworkDB
from movienet.errors import MovieNetError, MovieNotFoundError
from movienet.generator import generate_network_graph
from movienet.output.static_html import write_static_html
from movienet.serialization import from_persistable_document, generate_visualization_data


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        stream=sys.stdout,
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _add_generate_args(parser: argparse.ArgumentParser, config: Config) -> None:
    parser.add_argument(
        "query", nargs="?", default=config.default_seed,
        help=f"Starting movie (default: {config.default_seed})",
    )
    parser.add_argument(
        "output", nargs="?", default=config.output_file,
        help=f"Output HTML file (default: {config.output_file})",
    )


def _run_generate(args: argparse.Namespace, config: Config, db: NetworkDB | None = None) -> int:
    overrides = {
        key: value for key, value in (
            ("max_depth", getattr(args, "max_depth", None)),
            ("max_movies_per_level", getattr(args, "per_level", None)),
            ("request_delay", getattr(args, "delay", None)),
        ) if value is not None
    }
    try:
        builder_config = BuilderConfig.model_validate({**config.builder.model_dump(), **overrides})
    except ValidationError as e:
        print(f"Invalid generation settings: {e}")
        return 1
    try:
        result = asyncio.run(generate_network_graph(
            args.query, Path(args.output), config,
            builder_config=builder_config,
            db=db,
            save_name=getattr(args, "save", None),
        ))
    except MovieNotFoundError as e:
        print(f"Failed to generate network: {e}")
        return 1
    except Exception as e:
        print(f"Error generating network: {e}")
        return 1
    print(result)
    return 0


def generate_main(argv: list[str] | None = None) -> None:
    """movie-network-generator [startMovieQuery] [outputFile]"""
    config = load_config()
    parser = argparse.ArgumentParser(description="Movie Network Generator")
    _add_generate_args(parser, config)
    args = parser.parse_args(argv)
    _setup_logging(verbose=False)
    sys.exit(_run_generate(args, config))


def main(argv: list[str] | None = None) -> None:
    config = load_config()
    parser = argparse.ArgumentParser(description="Movie Network Explorer")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    # generate command
    gen_parser = sub.add_parser("generate", help="Build a network offline and write a static HTML page")
    _add_generate_args(gen_parser, config)
    gen_parser.add_argument("--max-depth", type=int, default=None, help="Traversal depth bound")
    gen_parser.add_argument("--per-level", type=int, default=None, help="Related movies expanded per node")
    gen_parser.add_argument("--delay", type=float, default=None, help="Seconds to wait after each expanded node")
    gen_parser.add_argument("--save", type=str, default=None, metavar="NAME", help="Also save the network under NAME")

    # list command
    sub.add_parser("list", help="List saved networks")

    # export command
    export_parser = sub.add_parser("export", help="Export a saved network")
    export_parser.add_argument("network_id", help="Saved network id")
    export_parser.add_argument("output", nargs="?", default=None, help="Output file (JSON goes to stdout if omitted)")
    export_parser.add_argument("--format", choices=["json", "html"], default="json")

    # delete command
    delete_parser = sub.add_parser("delete", help="Delete a saved network")
    delete_parser.add_argument("network_id", help="Saved network id")

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return

    db = NetworkDB(config)
    db.init_db()
    exit_code = 0
    try:
        if args.command == "generate":
            exit_code = _run_generate(args, config, db=db)

        elif args.command == "list":
            networks = db.list_networks()
            if not networks:
                print("No saved networks.")
                return
            for net in networks:
                meta = net.metadata
                rating = f"{meta.average_rating:.1f}" if meta.average_rating is not None else "N/A"
                print(
                    f"  {net.id}  {net.name}: {meta.total_movies} movies, "
                    f"{meta.total_connections} connections, depth {meta.max_depth}, "
                    f"rating {rating}, {len(meta.genres)} genres (created {net.created_at})"
                )

        elif args.command == "export":
            document = db.get_network(args.network_id)
            if document is None:
                print(f"Saved network not found: {args.network_id}")
                exit_code = 1
            elif args.format == "html":
                graph_data = generate_visualization_data(from_persistable_document(document))
                output = Path(args.output or f"{document.name}.html")
                write_static_html(graph_data, output, title=document.name)
                print(f"Output: {output}")
            elif args.output:
                Path(args.output).write_text(document.model_dump_json(indent=2), encoding="utf-8")
                print(f"Output: {args.output}")
            else:
                print(document.model_dump_json(indent=2))

        elif args.command == "delete":
            if db.delete_network(args.network_id):
                print(f"Deleted {args.network_id}")
            else:
                print(f"Saved network not found: {args.network_id}")
                exit_code = 1
    except MovieNetError as e:
        print(f"Error: {e}")
        exit_code = 1
    finally:
        db.close()

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
