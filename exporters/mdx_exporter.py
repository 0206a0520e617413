"""Per-record MDX exporter: localize images, convert, assemble, write."""

import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional

from converters.markdown_converter import MarkdownConverter
from models import ContentRecord, ConversionError, ConversionResult, ConversionStatus

from .document_assembler import DocumentAssembler, select_hero
from .image_localizer import ImageLocalizer


class MdxExporter:
    """
    Exports single records to ``<output>/<slug>.mdx``.

    One exporter is shared by all worker threads. Nothing per-record is kept
    on the instance except the counters in ``stats``, which are only updated
    through ``_count``.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        output_dir: Path,
        localizer: ImageLocalizer,
        logger: logging.Logger = None,
        assembler: Optional[DocumentAssembler] = None
    ):
        """
        Initialize the exporter.

        Args:
            config: Configuration dictionary
            output_dir: Run output directory
            localizer: Image localizer used for every record
            logger: Logger instance
            assembler: Document assembler (built from config when omitted)
        """
        self.config = config or {}
        self.output_dir = Path(output_dir)
        self.localizer = localizer
        self.logger = logger or logging.getLogger('wordpress_mdx_migrator.exporters.mdx_exporter')
        self.assembler = assembler or DocumentAssembler(self.config, self.logger)

        self.stats = {
            'records_exported': 0,
            'records_failed': 0,
            'images_saved': 0,
            'images_failed': 0
        }
        self._stats_lock = threading.Lock()

    def export(self, record: ContentRecord) -> ConversionResult:
        """
        Run the full pipeline for one record.

        Failures are caught and reported on the returned result; they never
        propagate to the caller.

        Args:
            record: Record to export

        Returns:
            ConversionResult describing the outcome
        """
        slug = record.slug
        result = ConversionResult(slug=slug, title=record.title)
        started = time.monotonic()
        output_file = self.output_dir / f"{slug}.mdx"

        self.logger.debug(f"Exporting '{record.title}' to {output_file}")

        try:
            # Undated records fail before any image is downloaded
            self.assembler.require_publication_date(record)

            # Images first, so the converter sees local references
            hero_urls = record.hero_candidates()
            localized = self.localizer.localize_assets(
                record.body,
                self.output_dir / slug,
                hero_url=hero_urls[0] if hero_urls else None
            )
            result.images = localized.names
            if localized.failed:
                result.warnings.extend(f"Image left remote: {url}" for url in localized.failed)

            converter = MarkdownConverter(logger=self.logger, config=self.config)
            markdown, repair_warnings = converter.convert_record_body(localized.body)
            result.warnings.extend(repair_warnings)

            hero = select_hero(localized.assets)
            result.hero = hero
            document = self.assembler.assemble(record, markdown, hero)

            self.output_dir.mkdir(parents=True, exist_ok=True)
            output_file.write_text(document, encoding='utf-8')

            result.output_path = str(output_file)
            result.status = ConversionStatus.PARTIAL if localized.failed else ConversionStatus.SUCCESS
            self.logger.debug(f"Wrote {len(document)} characters to {output_file}")

            self._count(saved=len(localized.assets), failed=len(localized.failed), exported=True)

        except ConversionError as e:
            self._fail(result, f"Conversion failed: {e}")
        except ValueError as e:
            self._fail(result, str(e))
        except OSError as e:
            self.logger.error(f"IO error writing {output_file}: {e}", exc_info=True)
            self._fail(result, f"IO error: {e}")

        result.duration = time.monotonic() - started
        return result

    def _fail(self, result: ConversionResult, message: str) -> None:
        result.status = ConversionStatus.FAILED
        result.error = message
        self.logger.error(f"Failed to export '{result.slug}': {message}")
        self._count(exported=False)

    def _count(self, saved: int = 0, failed: int = 0, exported: bool = True) -> None:
        with self._stats_lock:
            self.stats['images_saved'] += saved
            self.stats['images_failed'] += failed
            self.stats['records_exported' if exported else 'records_failed'] += 1
