#!/usr/bin/env python3
"""
Excel Exporter for World Facts Registries

Exports the built registries to a single XLSX workbook: one sheet per
registry plus a Summary sheet. Nested entity fields are flattened into
dotted column names and list values are joined with commas.

Usable from the pipeline (--export-xlsx) or standalone on a directory of
persisted registries.
"""

import argparse
import json
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Any, Tuple

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment
from pydantic import BaseModel
from utils.logger import get_logger

# Module-level logger
logger = get_logger(__name__)

# Excel limits sheet titles to 31 characters
MAX_SHEET_TITLE = 31


def _flatten(value: Any, prefix: str, out: Dict[str, Any]) -> None:
    if isinstance(value, dict):
        for key, inner in value.items():
            _flatten(inner, f"{prefix}.{key}" if prefix else key, out)
    elif isinstance(value, list):
        out[prefix] = ', '.join(str(v) for v in value)
    else:
        out[prefix] = value


def flatten_registry(registry: Mapping[str, Any]) -> Tuple[List[str], List[List[Any]]]:
    """
    Flatten a registry into a header row and data rows.

    Args:
        registry: Identifier to entity (pydantic model, dict or plain value)

    Returns:
        (headers, rows); the first column is always the identifier
    """
    flat_rows = []
    columns: List[str] = []

    for key in sorted(registry):
        value = registry[key]
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json", exclude_none=True)

        flat: Dict[str, Any] = {}
        _flatten(value, '' if isinstance(value, dict) else 'value', flat)

        for column in flat:
            if column not in columns:
                columns.append(column)

        flat_rows.append((key, flat))

    headers = ['Identifier'] + columns
    rows = [[key] + [flat.get(column) for column in columns] for key, flat in flat_rows]

    return headers, rows


def sheet_title(name: str) -> str:
    """'sovereign_states' -> 'Sovereign States'"""
    return name.replace('_', ' ').title()[:MAX_SHEET_TITLE]


def format_excel(workbook: Workbook, sheet_name: str) -> None:
    """
    Apply formatting to Excel workbook.

    Args:
        workbook: openpyxl Workbook object
        sheet_name: Name of sheet to format
    """
    ws = workbook[sheet_name]

    # Define styles
    header_font = Font(bold=True, size=11, color='FFFFFF')
    header_fill = PatternFill(start_color='4472C4', end_color='4472C4', fill_type='solid')
    header_alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)

    alt_row_fill = PatternFill(start_color='F2F2F2', end_color='F2F2F2', fill_type='solid')

    # Format header row
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment

    # Freeze first row
    ws.freeze_panes = 'A2'

    # Add filters to header row
    ws.auto_filter.ref = ws.dimensions

    # Alternate row colors (skip header)
    for idx, row in enumerate(ws.iter_rows(min_row=2, max_row=ws.max_row), start=2):
        if idx % 2 == 0:
            for cell in row:
                cell.fill = alt_row_fill

    # Auto-fit column widths
    for column_cells in ws.columns:
        max_length = 0
        column = column_cells[0].column_letter

        for cell in column_cells:
            if cell.value is not None:
                max_length = max(max_length, len(str(cell.value)))

        # Set column width with min 10 and max 80
        adjusted_width = min(max(max_length + 2, 10), 80)
        ws.column_dimensions[column].width = adjusted_width

    logger.debug(f"Applied formatting to sheet '{sheet_name}'")


def create_excel_workbook(
    registries: Mapping[str, Mapping[str, Any]],
    output_path: str
) -> Dict[str, int]:
    """
    Create XLSX workbook with one sheet per registry and a summary.

    Args:
        registries: Registry name to registry, in sheet order
        output_path: Path to save XLSX file

    Returns:
        Registry name to number of exported rows
    """
    workbook = Workbook()

    # Remove default sheet
    if 'Sheet' in workbook.sheetnames:
        workbook.remove(workbook['Sheet'])

    counts = {}

    for name, registry in registries.items():
        title = sheet_title(name)
        sheet = workbook.create_sheet(title)

        headers, rows = flatten_registry(registry)
        sheet.append(headers)
        for row in rows:
            sheet.append(row)

        format_excel(workbook, title)
        counts[name] = len(rows)
        logger.info(f"Created {title} sheet with {len(rows)} rows")

    # Create Summary sheet
    summary_sheet = workbook.create_sheet('Summary', 0)  # Insert as first sheet

    summary_sheet.append(['Export Summary', ''])
    summary_sheet.append(['', ''])
    summary_sheet.append(['Export Date', datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')])
    summary_sheet.append(['', ''])
    for name, count in counts.items():
        summary_sheet.append([sheet_title(name), count])

    # Format summary sheet
    summary_sheet['A1'].font = Font(bold=True, size=14)
    for row in range(3, summary_sheet.max_row + 1):
        summary_sheet[f'A{row}'].font = Font(bold=True)

    summary_sheet.column_dimensions['A'].width = 25
    summary_sheet.column_dimensions['B'].width = 50

    logger.info("Created Summary sheet")

    # Ensure output directory exists
    os.makedirs(os.path.dirname(output_path) or '.', exist_ok=True)

    # Save workbook
    workbook.save(output_path)
    logger.info(f"Saved Excel workbook to {output_path}")

    return counts


def load_persisted(input_dir: str) -> Dict[str, Dict[str, Any]]:
    """
    Read every persisted registry (*.json) from a directory.

    Args:
        input_dir: Directory written by the pipeline

    Returns:
        Registry name (file stem) to registry
    """
    registries = {}

    for path in sorted(Path(input_dir).glob('*.json')):
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            logger.warning(f"Skipping {path}: not a registry")
            continue

        registries[path.stem] = data

    return registries


def run(input_dir: str = 'output', output: Optional[str] = None) -> Dict[str, Any]:
    """
    Export persisted registries.

    Args:
        input_dir: Directory of persisted registries
        output: Output file path

    Returns:
        Export summary statistics
    """
    start_time = datetime.now(timezone.utc)

    if not os.path.isdir(input_dir):
        raise FileNotFoundError(f"Registry directory not found: {input_dir}")

    if not output:
        output = os.path.join(input_dir, 'world_facts.xlsx')

    registries = load_persisted(input_dir)
    if not registries:
        raise ValueError(f"No registries to export in {input_dir}")

    counts = create_excel_workbook(registries, output)
    duration = (datetime.now(timezone.utc) - start_time).total_seconds()

    print(f"\n{'='*60}")
    print(f"    Export Complete")
    print(f"{'='*60}")
    print(f"Duration: {duration:.1f}s")
    for name, count in counts.items():
        print(f"{sheet_title(name)}: {count}")
    print(f"Output file: {output}")
    print(f"{'='*60}\n")

    return {
        'success': True,
        'registries': counts,
        'output_file': output,
        'duration_seconds': duration
    }


def parse_arguments() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Export persisted world facts registries to XLSX',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python exporters/xlsx_exporter.py                              # Export output/*.json
  python exporters/xlsx_exporter.py --input output --output facts.xlsx
        """
    )

    parser.add_argument(
        '--input',
        type=str,
        default='output',
        help='Directory of persisted registries (default: output)'
    )

    parser.add_argument(
        '--output',
        type=str,
        help='Output file path (default: <input>/world_facts.xlsx)'
    )

    return parser.parse_args()


def main():
    """Main entry point."""
    args = parse_arguments()

    try:
        run(input_dir=args.input, output=args.output)
    except KeyboardInterrupt:
        print("\nOperation interrupted by user.")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Excel export failed: {e}")
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
