"""recap — distill documents and sessions into compact project memory.

Layout:
    recap/
    ├── templates.py      # (family, mode) → ordered field schema
    ├── records.py        # Record types, markdown + frontmatter rendering
    ├── archive.py        # Append-only archive, move-before-commit
    ├── extraction/       # Pluggable document → draft backends + validation
    ├── documents.py      # process_document
    ├── handoff.py        # generate_handoff (single Active record)
    ├── reporter.py       # report_state (read-only)
    └── project.py        # ProjectMemory facade over one project root
"""
