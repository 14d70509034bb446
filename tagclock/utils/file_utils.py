"""File I/O utility functions for tagClock."""
import os
import csv
import markdown

from ..errors import MarkdownValidationError

def write_csv(filename: str, headers: list, rows: list):
    """Write data to a CSV file.

    Args:
        filename: Output file name
        headers: Column headers
        rows: Data rows
    """
    with open(filename, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        writer.writerows(rows)

def write_markdown(md_path: str, content: str, title: str, overwrite: bool = False) -> str:
    """Validate a Markdown report and write it to a file.

    An existing file is appended to unless `overwrite` is set. The title
    heading is only written at the top of a new or empty file.

    Args:
        md_path: Output file path
        content: Markdown content
        title: Heading for a new file
        overwrite: Whether to replace an existing file

    Returns:
        What happened to the file: 'created', 'appended' or 'overwritten'

    Raises:
        MarkdownValidationError: If the content cannot be rendered; nothing is written
        OSError: If the file cannot be written
    """
    exists = os.path.exists(md_path)
    appending = exists and not overwrite
    if not appending or os.path.getsize(md_path) == 0:
        content = f"# {title}\n\n{content}"

    # Rendering to HTML raises on content the parser cannot handle
    try:
        markdown.markdown(content)
    except Exception as e:
        raise MarkdownValidationError(md_path, e) from e

    with open(md_path, 'a' if appending else 'w', encoding='utf-8') as f:
        f.write(content)
    if appending:
        return 'appended'
    return 'overwritten' if exists else 'created'
