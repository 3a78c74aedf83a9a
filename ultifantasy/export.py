"""Excel export of price tables and standings."""

from pathlib import Path

import openpyxl
from openpyxl.styles import Font

from .logging_config import get_logger
from .models import PriceTable

logger = get_logger('export')

PRICES_SHEET = 'Prices'
LEADERBOARD_SHEET = 'Leaderboard'


def _sheet(excel_path: Path, sheet_name: str):
    """Load or create a workbook and return it with an emptied sheet."""
    if excel_path.exists():
        wb = openpyxl.load_workbook(str(excel_path))
        if sheet_name in wb.sheetnames:
            ws = wb[sheet_name]
        else:
            ws = wb.create_sheet(sheet_name)
    else:
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = sheet_name

    ws.delete_rows(1, ws.max_row)
    return wb, ws


def _header(ws, values: list) -> None:
    for col_idx, value in enumerate(values, start=1):
        cell = ws.cell(row=1, column=col_idx, value=value)
        cell.font = Font(bold=True)


def export_price_table(table: PriceTable, excel_path: Path | str, sheet_name: str = PRICES_SHEET) -> Path:
    """
    Write a price table: one row per player, a points and price column per week.

    Points of weeks the player missed are left blank.
    """
    excel_path = Path(excel_path)
    wb, ws = _sheet(excel_path, sheet_name)

    header = ['Player', 'Team', 'Start']
    for week in table.weeks:
        header += [f'W{week.week_number} Pts', f'W{week.week_number} Price']
    _header(ws, header)

    for row_idx, row in enumerate(table.players, start=2):
        ws.cell(row=row_idx, column=1, value=row.player_name)
        ws.cell(row=row_idx, column=2, value=row.team_name or '')
        ws.cell(row=row_idx, column=3, value=row.starting_price)

        col = 4
        for week in table.weeks:
            data = row.week_data.get(week.week_number)
            if data is not None:
                if data.played:
                    ws.cell(row=row_idx, column=col, value=data.points)
                ws.cell(row=row_idx, column=col + 1, value=data.price)
            col += 2

    wb.save(str(excel_path))
    logger.info(f'Exported {len(table.players)} player prices to {excel_path}')
    return excel_path


def export_leaderboard(standings: list[dict], excel_path: Path | str, sheet_name: str = LEADERBOARD_SHEET) -> Path:
    excel_path = Path(excel_path)
    wb, ws = _sheet(excel_path, sheet_name)

    _header(ws, ['Rank', 'Team', 'Points', 'Weeks'])
    for row_idx, row in enumerate(standings, start=2):
        ws.cell(row=row_idx, column=1, value=row['rank'])
        ws.cell(row=row_idx, column=2, value=row['name'])
        ws.cell(row=row_idx, column=3, value=row['total_points'])
        ws.cell(row=row_idx, column=4, value=row['weeks_scored'])

    wb.save(str(excel_path))
    logger.info(f'Exported leaderboard ({len(standings)} teams) to {excel_path}')
    return excel_path
