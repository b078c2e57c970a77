"""
pharmafield.receipts

Printable collection receipt: pharmacy, date, line items, total and two
signature blocks, rendered as a right-to-left HTML page.
"""

from html import escape
from typing import List

from pharmafield.models import Product

_STYLE = """
body { font-family: Tahoma, Arial, sans-serif; margin: 0; }
.receipt { max-width: 28rem; margin: 0 auto; padding: 1.5rem; }
.receipt h2 { text-align: center; }
.row { display: flex; justify-content: space-between; margin: .5rem 0; }
.sep { border-top: 1px solid #ddd; margin: 1rem 0; }
table { width: 100%; border-collapse: collapse; }
th, td { padding: .4rem 0; border-bottom: 1px solid #eee; }
.total { font-weight: bold; font-size: 1.1rem; }
.signatures { display: flex; justify-content: space-between; margin-top: 2rem; text-align: center; }
"""


def _amount(value, currency):
    number = value or 0
    text = f"{number:,.2f}".rstrip("0").rstrip(".") if isinstance(number, float) else f"{number:,}"
    return f"{text} {escape(currency)}"


def render_receipt_html(
    pharmacy: str,
    date: str,
    amount: float,
    products: List[Product],
    representative: str,
    receiver: str,
    currency: str = "ريال",
) -> str:
    rows = "\n".join(
        f"<tr><td>{escape(p.medicine)}</td>"
        f"<td style='text-align:center'>{p.quantity}</td>"
        f"<td style='text-align:left'>{_amount(p.total_price, currency)}</td></tr>"
        for p in products
    )
    return f"""<!DOCTYPE html>
<html lang="ar" dir="rtl">
<head><meta charset="utf-8"><title>إيصال تحصيل</title><style>{_STYLE}</style></head>
<body>
<div class="receipt">
  <h2>إيصال تحصيل</h2>
  <div class="row"><span>الصيدلية:</span><span>{escape(pharmacy or "")}</span></div>
  <div class="row"><span>التاريخ:</span><span>{escape(date or "")}</span></div>
  <div class="sep"></div>
  <h3>تفاصيل المنتجات:</h3>
  <table>
    <thead><tr><th style='text-align:right'>المنتج</th><th>الكمية</th><th style='text-align:left'>المجموع</th></tr></thead>
    <tbody>
{rows}
    </tbody>
  </table>
  <div class="sep"></div>
  <div class="row total"><span>المجموع الكلي:</span><span>{_amount(amount, currency)}</span></div>
  <div class="sep"></div>
  <div class="signatures">
    <div><div>توقيع المندوب</div><div>{escape(representative)}</div></div>
    <div><div>توقيع المستلم</div><div>{escape(receiver)}</div></div>
  </div>
</div>
</body>
</html>"""


def print_script(html: str, delay_ms: int = 100) -> str:
    """Append a script that opens the print dialog once the page has settled."""
    return html.replace(
        "</body>",
        f"<script>setTimeout(function () {{ window.print(); }}, {int(delay_ms)});</script>\n</body>",
    )
