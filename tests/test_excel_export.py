from conftest import make_payment, make_student
from openpyxl import load_workbook

from edupay.excel_export import export_daily_record, export_monthly_summary
from edupay.models import AppData, DayType, Level, PaymentMethod


def _data() -> AppData:
    return AppData(
        students=[
            make_student("s1", "Zaw", Level.KET_1),
            make_student("s2", "Aye", Level.STARTERS_1, DayType.WEEKEND),
            make_student("s3", "Bo", Level.STARTERS_2, DayType.WEEKEND),
        ],
        payments=[
            make_payment("p1", "s1", amount=70000, sheet_no=1),
            make_payment("p2", "s2", amount=65000, sheet_no=1),
            make_payment("p3", "s3", amount=65000, sheet_no=2),
            make_payment("p4", "s1", amount=70000, method=PaymentMethod.KPAY),
            make_payment("p5", "gone", amount=65000, method=PaymentMethod.KPAY, day_type=DayType.WEEKEND),
        ],
    )


def _rows(ws):
    return [list(r) for r in ws.iter_rows(values_only=True)]


def test_daily_record_workbook(tmp_path):
    path = tmp_path / "daily.xlsx"
    export_daily_record(_data(), path, "2024-03-05", 1)
    wb = load_workbook(path)
    assert wb.sheetnames == ["Cash", "K-pay", "History"]

    cash = _rows(wb["Cash"])
    assert cash[0] == ["Level", "Students", "Cash"]
    by_level = {r[0]: r for r in cash[1:]}
    assert by_level["Starters"][1:] == [1, 65000]
    assert by_level["KET"][1:] == [1, 70000]
    assert by_level["TOTAL"][1:] == [2, 135000]

    kpay = _rows(wb["K-pay"])
    assert kpay[1][1:4] == ["Unknown", "N/A", "WE"]
    assert kpay[-1][0] == "TOTAL" and kpay[-1][5] == 135000

    history = _rows(wb["History"])
    assert len(history) == 1 + 5


def test_monthly_summary_workbook(tmp_path):
    path = tmp_path / "monthly.xlsx"
    export_monthly_summary(_data(), path, "2024-03")
    wb = load_workbook(path)
    assert wb.sheetnames == ["Final summary", "TSL", "TIL"]

    fsr = _rows(wb["Final summary"])
    assert fsr[0][0] == "Monthly summary March 2024"
    header = fsr[1]
    cash = dict(zip(header, fsr[2]))
    assert cash["Starters"] == 2
    assert cash["KET"] == 1
    assert cash["Amount"] == 200000
    gross = dict(zip(header, fsr[4]))
    assert gross["Students"] == 5
    assert gross["Amount"] == 335000

    til = _rows(wb["TIL"])
    assert len(til) == 1 + 20 + 1
    assert til[-1][-1] == 200000
    tsl = _rows(wb["TSL"])
    assert tsl[2][0] == 2 and tsl[2][-1] == 1
