
import argparse
import json
import logging
import sys
from pathlib import Path
from types import SimpleNamespace

from supportkb.config.settings import Settings, settings
from supportkb.container import build_search_service, configure_container, container
from supportkb.core.exceptions import KnowledgeBaseError
from supportkb.core.models.document import SearchResponse, dump_sources, validate_sources
from supportkb.core.models.index import RetrievalIndex
from supportkb.core.services.index_service import IndexService
from supportkb.core.services.ingest_service import IngestService

logger = logging.getLogger(__name__)


def _configure(args: argparse.Namespace) -> Settings:
    """Settings with command-line overrides, wired into the container."""
    overrides = {"tenant_id": args.tenant, "project_id": args.project}
    if getattr(args, "concurrency", None) is not None:
        overrides["ingest_concurrency"] = args.concurrency
    if getattr(args, "top_k", None) is not None:
        overrides["rag_top_k"] = args.top_k
    if getattr(args, "min_score", None) is not None:
        overrides["rag_min_score"] = args.min_score

    effective = settings.model_copy(update=overrides)
    container.reset()
    configure_container(effective)
    return effective


def _load_index(kb_path: str) -> RetrievalIndex:
    """Validate a sources JSON file and index it."""
    payload = json.loads(Path(kb_path).read_text(encoding="utf-8"))
    sources = validate_sources(payload)
    return container.resolve(IndexService).build(sources)


def _print_response(response: SearchResponse, as_json: bool) -> None:
    if as_json:
        print(
            json.dumps(
                [
                    {
                        "chunk_id": r.chunk.id,
                        "source_id": r.chunk.source_id,
                        "score": round(r.score, 4),
                        "heading_path": list(r.chunk.heading_path),
                        "start_line": r.chunk.start_line,
                        "end_line": r.chunk.end_line,
                        "content": r.chunk.content,
                    }
                    for r in response.results
                ],
                ensure_ascii=False,
                indent=2,
            )
        )
        return

    if not response.results:
        print("No matching chunks")
        return

    for i, r in enumerate(response.results, 1):
        location = " > ".join(r.chunk.heading_path) or r.chunk.source_id
        preview = " ".join(r.chunk.content.split())[:200]
        print(f"[{i}] {r.score:.2f} {location} (lines {r.chunk.start_line}-{r.chunk.end_line})")
        print(f"    {preview}")


def cmd_ingest(args: argparse.Namespace) -> int:
    """Ingest command - chunk documents and write sources JSON."""
    effective = _configure(args)
    ingest_service = container.resolve(IngestService)
    sources = ingest_service.run(args.path)

    out_path = Path(args.out or effective.kb_sources_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(dump_sources(sources))

    chunk_count = sum(len(s.chunks) for s in sources)
    if args.json:
        print(json.dumps({"documents": len(sources), "chunks": chunk_count, "out": str(out_path)}))
    else:
        logger.info(f"Ingested {len(sources)} documents")
        logger.info(f"Created {chunk_count} chunks")
        logger.info(f"Sources written to {out_path}")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Search command - query an ingested knowledge base."""
    effective = _configure(args)
    search_service = build_search_service(_load_index(args.kb), effective)
    _print_response(search_service.search(args.query), args.json)
    return 0


def cmd_ticket(args: argparse.Namespace) -> int:
    """Ticket command - retrieve chunks for a ticket subject and body."""
    effective = _configure(args)
    search_service = build_search_service(_load_index(args.kb), effective)
    ticket = SimpleNamespace(subject=args.subject, body=args.body)
    _print_response(search_service.search_ticket(ticket), args.json)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="supportkb",
        description="Knowledge-base ingestion and keyword retrieval",
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--tenant", default=settings.tenant_id, help="Tenant ID")
    common.add_argument("--project", default=settings.project_id, help="Project ID")
    common.add_argument("--json", action="store_true", help="Emit JSON output only")

    commands = parser.add_subparsers(dest="command", required=True)

    ingest = commands.add_parser(
        "ingest", parents=[common], help="Ingest documents from a directory or file"
    )
    ingest.add_argument("path", help="Directory or file containing KB documents")
    ingest.add_argument("--out", default=None, help="Output path for sources JSON")
    ingest.add_argument("--concurrency", type=int, default=None, help="Files per batch")
    ingest.set_defaults(handler=cmd_ingest)

    query_options = argparse.ArgumentParser(add_help=False)
    query_options.add_argument(
        "--kb", default=settings.kb_sources_path, help="Sources JSON written by ingest"
    )
    query_options.add_argument("--top-k", type=int, default=None, help="Maximum results")
    query_options.add_argument("--min-score", type=float, default=None, help="Minimum score")

    search = commands.add_parser(
        "search", parents=[common, query_options], help="Search the knowledge base"
    )
    search.add_argument("query", help="Search query")
    search.set_defaults(handler=cmd_search)

    ticket = commands.add_parser(
        "ticket", parents=[common, query_options], help="Retrieve chunks for a ticket"
    )
    ticket.add_argument("--subject", required=True, help="Ticket subject")
    ticket.add_argument("--body", default="", help="Ticket body")
    ticket.set_defaults(handler=cmd_ticket)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(message)s",
    )

    try:
        return args.handler(args)
    except (KnowledgeBaseError, OSError, json.JSONDecodeError) as e:
        print(f"[supportkb] {args.command} failed: {e}", file=sys.stderr, flush=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
