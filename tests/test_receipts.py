from pharmafield.receipts import print_script, render_receipt_html

from conftest import line


def test_receipt_layout():
    html = render_receipt_html(
        "صيدلية الشفاء", "2024-01-01", 45.0, [line("Panadol", 3, 15)],
        representative="محمد أحمد", receiver="أحمد محمد",
    )
    assert 'dir="rtl"' in html
    assert "صيدلية الشفاء" in html
    assert "<td>Panadol</td>" in html
    assert "45 ريال" in html
    assert "توقيع المندوب" in html and "توقيع المستلم" in html


def test_receipt_escapes_free_text():
    html = render_receipt_html("<b>x</b>", "2024-01-01", 0, [], representative="a&b", receiver="c")
    assert "<b>x</b>" not in html
    assert "&lt;b&gt;x&lt;/b&gt;" in html
    assert "a&amp;b" in html


def test_print_script_delays_dialog():
    html = print_script(render_receipt_html("A", "2024-01-01", 1, [], "r", "s"), delay_ms=250)
    assert "window.print()" in html
    assert "250" in html
    assert html.rstrip().endswith("</html>")
