"""
VLM Product Tagger Command Line Interface

Usage:
    vlm-tagger process products.xlsx --output tagged.xlsx
    vlm-tagger process products.csv --server http://localhost:8000/api/process
    vlm-tagger test --name "经典款手提包" --image https://example.com/bag.jpg
    vlm-tagger summary 商品标签结果_2026-01-01.xlsx
    vlm-tagger serve --port 8000
"""

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from .core.catalog_processor import CatalogProcessor, RowExtractionError
from .core.tag_generator import TagGenerator
from .integrations.batch_api import RemoteBatchSubmitter
from .models.product import CatalogProcessingResult, TagResult
from .models.tag_config import DEFAULT_MARKERS
from .utils.config import ConfigManager, setup_logging


def _print_progress(processed: int, total: int):
    print(f"   ⏳ {processed}/{total} products tagged", flush=True)


def _print_summary(result: CatalogProcessingResult, preview_rows: int = 10):
    print(f"\n✅ Processing Complete!")
    print(f"   📊 Total products: {result.total_products}")
    print(f"   ✅ Succeeded: {result.succeeded}")
    print(f"   ❌ Failed: {result.failed}")
    for status, count in sorted(result.status_counts.items()):
        print(f"      • {status}: {count}")
    if result.processing_time_seconds:
        print(f"   ⏱️  Processing time: {result.processing_time_seconds:.2f}s")

    stats = result.summary_stats
    if stats:
        print(f"\n📈 Summary Statistics:")
        print(f"   🏷️  Total tags generated: {stats.get('total_tags_generated', 0)}")
        print(f"   🎯 Unique tags: {stats.get('unique_tags', 0)}")
        print(f"   📊 Avg tags per product: {stats.get('avg_tags_per_product', 0):.1f}")

        most_common = stats.get("most_common_tags", {})
        if most_common:
            print(f"\n🔥 Most Common Tags:")
            for tag, count in list(most_common.items())[:5]:
                print(f"   • {tag}: {count} products")

    if preview_rows and result.results:
        print(f"\n🔎 Preview:")
        for r in result.results[:preview_rows]:
            print(f"   • {r.product_name}: {r.tags}")


def process_catalog_command(args, config: ConfigManager):
    """Tag a catalog file"""
    print(f"🏭 Processing catalog: {args.catalog}")

    submitter = None
    if args.server:
        print(f"🌐 Submitting groups to: {args.server}")
        submitter = RemoteBatchSubmitter(args.server, config)

    try:
        tagger = TagGenerator(config, submitter=submitter)
        result = tagger.process_catalog(
            catalog_path=args.catalog,
            output_path=args.output,
            progress_callback=_print_progress,
        )
    except (RowExtractionError, FileNotFoundError, OSError) as e:
        print(f"❌ Error processing catalog: {e}")
        sys.exit(1)

    _print_summary(result, config.get("output.preview_rows", 10))
    print(f"\n💾 Results saved to: {result.output_path}")


def test_product_command(args, config: ConfigManager):
    """Tag a single product"""
    print(f"🧪 Tagging product: {args.name}")

    result: TagResult = TagGenerator(config).tag_single_product(args.name, args.image)

    if result.outcome.is_success:
        print(f"✅ Generated {len(result.outcome.tags)} tags")
        for tag in result.outcome.tags:
            print(f"   • {tag}")
    else:
        print(f"❌ {result.outcome.status.value}")
        sys.exit(1)


def summary_command(args, config: ConfigManager):
    """Summarise an existing result file"""
    path = Path(args.results)
    try:
        results = CatalogProcessor(config).load_results(path.read_bytes(), path.name)
    except (RowExtractionError, OSError) as e:
        print(f"❌ Error reading results: {e}")
        sys.exit(1)

    print(f"📄 {path.name}")
    _print_summary(CatalogProcessingResult.from_results(results), args.preview)


def list_tags_command(args, config: ConfigManager):
    """List the marker vocabularies used by the category filter"""
    print("📋 Category marker vocabularies")
    for name, tags in DEFAULT_MARKERS.vocabularies():
        print(f"\n🏷️  {name} ({len(tags)}):")
        print(f"   {' '.join(tags)}")


def serve_command(args, config: ConfigManager):
    """Run the batch submission endpoint"""
    import uvicorn

    from .api.app import create_app

    host = args.host or config.get("server.host", "0.0.0.0")
    port = args.port or config.get("server.port", 8000)
    print(f"🚀 Serving /api/process on {host}:{port}")
    uvicorn.run(create_app(config), host=host, port=port)


def status_command(args, config: ConfigManager):
    """Show system status and configuration"""
    print("⚙️  System Status")
    status = TagGenerator(config).get_processing_status()

    print(f"\n📊 Configuration:")
    print(
        f"   • API Key: {'✅ Configured' if status['api_configured'] else '❌ Not configured'}"
    )
    print(f"   • Base URL: {status['base_url']}")
    print(f"   • Model: {status['model']}")
    print(f"   • Batch Size: {status['batch_size']}")
    print(f"   • Retry Attempts: {status['retry_attempts']}")
    print(f"   • Supported Formats: {', '.join(status['supported_formats'])}")


COMMANDS = {
    "process": process_catalog_command,
    "test": test_product_command,
    "summary": summary_command,
    "tags": list_tags_command,
    "serve": serve_command,
    "status": status_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="VLM Product Tagger - Generate search tags from product images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Tag a catalog locally
    vlm-tagger process products.xlsx --output tagged.xlsx

    # Tag through a running submission endpoint
    vlm-tagger process products.csv --server http://localhost:8000/api/process

    # Tag a single product
    vlm-tagger test --name "经典款手提包" --image https://example.com/bag.jpg
        """,
    )
    parser.add_argument("--config", help="Path to settings.yaml")

    # Accepted after the subcommand too; SUPPRESS leaves the top-level value in place
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=argparse.SUPPRESS, help="Path to settings.yaml")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    process_parser = subparsers.add_parser("process", parents=[common], help="Tag a catalog file")
    process_parser.add_argument("catalog", help="Path to catalog file (CSV or Excel)")
    process_parser.add_argument("--output", help="Output file path (.xlsx or .csv)")
    process_parser.add_argument(
        "--server", help="Submit groups to this /api/process URL instead of tagging locally"
    )

    test_parser = subparsers.add_parser("test", parents=[common], help="Tag a single product")
    test_parser.add_argument("--name", required=True, help="Product name")
    test_parser.add_argument("--image", required=True, help="Product image URL")

    summary_parser = subparsers.add_parser("summary", parents=[common], help="Summarise a result file")
    summary_parser.add_argument("results", help="Path to a result file")
    summary_parser.add_argument(
        "--preview", type=int, default=10, help="Rows to preview (default: 10)"
    )

    subparsers.add_parser("tags", parents=[common], help="List category marker vocabularies")

    serve_parser = subparsers.add_parser("serve", parents=[common], help="Run the submission endpoint")
    serve_parser.add_argument("--host", help="Bind address")
    serve_parser.add_argument("--port", type=int, help="Port")

    subparsers.add_parser("status", parents=[common], help="Show system status")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    load_dotenv()
    config = ConfigManager(args.config)
    setup_logging(config)

    COMMANDS[args.command](args, config)


if __name__ == "__main__":
    main()
