"""Entry-point for the article rendering pipeline."""
from __future__ import annotations

import argparse
import sys
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from prose_renderer.config import RenderConfig, load_config
from prose_renderer.errors import RenderError
from prose_renderer.model.document_model import Document, ResolvedDocument
from prose_renderer.model.tag_model import default_catalog
from prose_renderer.parser.markup_parser import MarkupParser
from prose_renderer.renderer.html_renderer import HtmlRenderer
from prose_renderer.renderer.utils import build_markdown
from prose_renderer.resolver.tag_resolver import TagResolver
from prose_renderer.utils.debug import DebugDumper
from prose_renderer.utils.logger import get_logger
from prose_renderer.utils.text_normalizer import normalize_source

LOGGER = get_logger(__name__)


def build_document(source_path: Path, config: Optional[RenderConfig] = None) -> Document:
    """Read an article from disk and parse it into a document tree."""
    config = config or RenderConfig()
    return MarkupParser(
        normalize_source(source_path.read_bytes()),
        default_catalog(),
        source_path.name,
        md=build_markdown(config.markdown),
    ).parse()


def resolve_document(document: Document, config: Optional[RenderConfig] = None) -> ResolvedDocument:
    config = config or RenderConfig()
    return TagResolver(default_catalog(), default_ai=config.hero.default_ai).resolve(document)


def render_source(text: Union[str, bytes], config: Optional[RenderConfig] = None, *, source_name: Optional[str] = None) -> str:
    """Parse, resolve and render one article to an HTML fragment."""
    config = config or RenderConfig()
    parser = MarkupParser(normalize_source(text), default_catalog(), source_name, md=build_markdown(config.markdown))
    return HtmlRenderer(config).render(resolve_document(parser.parse(), config))


def render_file(
    source_path: Path,
    output_dir: Path,
    config: Optional[RenderConfig] = None,
    *,
    page: bool = True,
    debug: bool = False,
) -> Path:
    """Render one article into ``<output_dir>/<stem>.html``.

    Nothing is written when any stage fails.
    """
    config = config or RenderConfig()
    LOGGER.info("Building document model for %s", source_path.name)
    document = build_document(source_path, config)
    resolved = resolve_document(document, config)

    output_dir.mkdir(parents=True, exist_ok=True)
    target = HtmlRenderer(config).write(resolved, output_dir / f"{source_path.stem}.html", page=page)
    LOGGER.info("Rendered %s into %s", source_path.name, target)

    if debug:
        DebugDumper(output_dir / "debug").dump(resolved, name=f"{source_path.stem}.json")
    return target


def render_many(
    source_paths: Iterable[Path],
    output_dir: Path,
    config: Optional[RenderConfig] = None,
    *,
    jobs: int = 1,
    page: bool = True,
    debug: bool = False,
) -> List[Path]:
    """Render independent articles concurrently, preserving input order."""
    config = config or RenderConfig()
    paths = list(source_paths)
    stems = Counter(path.stem for path in paths)
    clashes = sorted(f"{stem}.html" for stem, count in stems.items() if count > 1)
    if clashes:
        raise RenderError(f"Several inputs would write the same output file: {', '.join(clashes)}")

    if jobs <= 1 or len(paths) <= 1:
        return [render_file(path, output_dir, config, page=page, debug=debug) for path in paths]

    with ThreadPoolExecutor(max_workers=jobs) as pool:
        futures = [pool.submit(render_file, path, output_dir, config, page=page, debug=debug) for path in paths]
        return [future.result() for future in futures]


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render articles with custom tags into HTML")
    parser.add_argument("files", nargs="+", help="Article files to render")
    parser.add_argument("--output", help="Directory to write generated HTML (default: next to each input)")
    parser.add_argument("--config", help="Path to a prose_renderer.toml file")
    parser.add_argument("--jobs", type=int, default=1, help="Number of articles to render in parallel")
    parser.add_argument("--debug", action="store_true", help="Dump the resolved document tree as JSON as well")
    parser.add_argument("--fragment", action="store_true", help="Write the body fragment instead of a full page")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the text -> document -> resolved document -> HTML pipeline."""
    args = build_arg_parser().parse_args(argv)
    try:
        config = load_config(Path(args.config) if args.config else None)
        paths = [Path(name).resolve() for name in args.files]
        for path in paths:
            if not path.is_file():
                raise RenderError(f"Input file not found: {path}")

        if args.output:
            render_many(
                paths,
                Path(args.output).resolve(),
                config,
                jobs=args.jobs,
                page=not args.fragment,
                debug=args.debug,
            )
        else:
            for path in paths:
                render_file(path, path.parent, config, page=not args.fragment, debug=args.debug)
    except RenderError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
