"""Audiobook Export -- move Apple Books audiobooks into an Audiobookshelf library.

Core modules:
    config    -- Exporter configuration via pydantic-settings (.env, env vars, CLI
                 kwargs) and loguru setup. Resolves the Apple Books default source.
    cli       -- Click CLI entry point (audiobook-export). Exit 0 on success,
                 1 on partial failures (missing sources, failed files), 2 on fatal.
    runner    -- Pipeline orchestration: catalog -> locate -> layout -> plan -> execute.
    catalog   -- Books.plist parsing (plistlib) into BookRecord entries.
    sanitize  -- Table-driven filename sanitization for filesystem safety
    report    -- Plan and execution summaries for the terminal

Subpackages:
    ops -- Asset location, destination layout, reconciliation plan, and execution
"""
