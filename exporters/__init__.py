"""MDX export package for the WordPress to MDX migration pipeline.

This package turns converted records into files on disk.

Package Structure:
- image_localizer: Downloads remote images and rewrites body references
- document_assembler: Builds front matter and joins it with the body
- mdx_exporter: Runs the per-record pipeline and writes ``<slug>.mdx``

Configuration Referenced:
- export.output_directory: Base output path for exported files
- export.redirect_hosts: Host prefixes stripped from post links
- export.default_hero: Hero used when a post has no still image
"""

from .document_assembler import DocumentAssembler, longest_description, select_hero
from .image_localizer import ImageLocalizer, LocalizationResult
from .mdx_exporter import MdxExporter

__all__ = [
    'DocumentAssembler',
    'ImageLocalizer',
    'LocalizationResult',
    'MdxExporter',
    'longest_description',
    'select_hero'
]
