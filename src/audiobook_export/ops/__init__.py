"""File operations for the audiobook exporter.

Submodules:
    locate  -- Resolve a catalog identifier to its hash-named storage directory via
               an injectable StorageResolver (identifier -> path) and list its audio
               files in case-insensitive name order. Catalog parts missing on disk
               come back with present=False instead of raising.
    layout  -- Pure Audiobookshelf naming: Author/Title {Narrator}/files. Lone .m4b
               files are renamed to <Title>.m4b. assign_destinations appends the
               identifier when two books would share a folder.
    plan    -- build_plan classifies each destination file as to_add, already_exists
               or source_missing (existence only, dangling symlinks count). Plan
               carries per-status file and book totals.
    execute -- PlanExecutor copies (temp file + atomic rename) or symlinks (absolute
               target) every to_add entry. Failures are per file; dry run stops just
               before the first mutation. Optional thread pool for large libraries.
"""
