# pharmafield_streamlit_app.py
# Streamlit app for "PharmaField" – field-sales administration for pharmaceutical representatives.
# How to run:
#   1) Install: pip install -e .
#   2) Run: streamlit run pharmafield_streamlit_app.py
# Notes:
#   - Collections, orders and missing items are JSON arrays under PHARMAFIELD_DATA_DIR (default ./data).
#   - The pharmacy dashboard reads a seeded demo dataset, not the persisted records.

from datetime import date

import pandas as pd
import streamlit as st
import streamlit.components.v1 as components
from dateutil.relativedelta import relativedelta

from pharmafield.config import Settings, configure_logging
from pharmafield.demo_data import DemoVisitSource
from pharmafield.errors import PharmaFieldError
from pharmafield.grouping import pharmacy_date_key
from pharmafield.lifecycle import CollectorService
from pharmafield.missing import (
    MissingItemsTracker,
    filter_missing_items,
    format_percentage,
    missing_stats,
)
from pharmafield.models import APPROVED, PENDING, REJECTED, STATUS_LABELS
from pharmafield.receipts import print_script, render_receipt_html
from pharmafield.reports import (
    TYPE_LABELS,
    VISIT_STATUS_LABELS,
    collection_trend,
    export_filename,
    filter_visits,
    pharmacy_stats,
    representative_performance,
    to_csv_bytes,
    visits_export_frame,
)
from pharmafield.store import COLLECTIONS, ORDERS, RecordStore
from pharmafield.visits import MEDICINE_PRICES, PHARMACIES, VisitService, make_lines

# ---------------------------
# App config
# ---------------------------
st.set_page_config(page_title="PharmaField", page_icon="💊", layout="wide")

try:
    settings = Settings.from_env()
except PharmaFieldError as exc:
    st.error(f"Configuration error: {exc}")
    st.stop()

configure_logging(settings.log_level)
store = RecordStore(settings.data_dir)
collector = CollectorService(store, status_policy=settings.group_status_policy)

STATUS_FILTERS = {"all": "الكل", PENDING: STATUS_LABELS[PENDING], APPROVED: STATUS_LABELS[APPROVED], REJECTED: STATUS_LABELS[REJECTED]}
STATUS_COLORS = {PENDING: "#d97706", APPROVED: "#16a34a", REJECTED: "#dc2626"}


# ---------------------------
# Utilities
# ---------------------------
def money(x):
    try:
        return f"{float(x or 0):,.2f} {settings.currency}"
    except (TypeError, ValueError):
        return x


def badge(text, color="#2563eb"):
    return f"<span style='padding:2px 6px;border-radius:8px;background-color:{color};color:white;font-size:0.75rem'>{text}</span>"


def status_badge(status):
    return badge(STATUS_LABELS.get(status, status), STATUS_COLORS.get(status, "#6b7280"))


def flash(message):
    st.session_state.flash = message
    st.rerun()


def show_flash():
    message = st.session_state.pop("flash", None)
    if message:
        st.success(message)


def run_action(action, success_message):
    try:
        action()
    except PharmaFieldError as exc:
        st.error(str(exc))
        return
    flash(success_message)


def queue_receipt(pharmacy, visit_date, amount, products):
    st.session_state.receipt = {
        "pharmacy": pharmacy,
        "date": visit_date,
        "amount": amount,
        "products": products,
    }


def render_queued_receipt():
    receipt = st.session_state.pop("receipt", None)
    if not receipt:
        return
    html = render_receipt_html(
        receipt["pharmacy"], receipt["date"], receipt["amount"], receipt["products"],
        representative=settings.representative_name,
        receiver=settings.receiver_name,
        currency=settings.currency,
    )
    components.html(print_script(html), height=600, scrolling=True)


def lines_editor(key):
    base = pd.DataFrame({
        "selected": False,
        "medicine": list(MEDICINE_PRICES.keys()),
        "price": list(MEDICINE_PRICES.values()),
        "quantity": 0,
    })
    return st.data_editor(
        base,
        key=key,
        hide_index=True,
        use_container_width=True,
        disabled=["medicine", "price"],
        column_config={
            "selected": st.column_config.CheckboxColumn("اختيار"),
            "medicine": "الدواء",
            "price": st.column_config.NumberColumn("السعر"),
            "quantity": st.column_config.NumberColumn("الكمية", min_value=0, step=1),
        },
    )


def selected_quantities(df):
    picked = df[df["selected"] & (df["quantity"] > 0)]
    return {row.medicine: int(row.quantity) for row in picked.itertuples()}


@st.cache_data
def load_demo_visits(count, seed):
    return DemoVisitSource(count, seed).visits()


# ---------------------------
# UI: Sidebar
# ---------------------------
with st.sidebar:
    st.title("💊 PharmaField")
    st.caption("Visits • Collections • Orders")
    page = st.radio("Go to", [
        "🏪 Pharmacy Visit",
        "💵 Financial Collector",
        "🛒 Order Collector",
        "⚠️ Missing Items",
        "📊 Pharmacy Dashboard",
    ])
    st.caption(f"Data directory: `{settings.data_dir}`")


# ---------------------------
# Page: Pharmacy visit
# ---------------------------
def page_visit():
    st.subheader("نموذج زيارة صيدلية")
    show_flash()

    with st.form("pharmacy_visit", clear_on_submit=True):
        c1, c2 = st.columns(2)
        with c1:
            visit_date = st.date_input("تاريخ الزيارة", value=date.today())
        with c2:
            pharmacy = st.selectbox("اسم الصيدلية", PHARMACIES)

        c1, c2, c3, c4 = st.columns(4)
        c1.radio("توزيع درافت", ["لا", "نعم"], horizontal=True)
        c2.radio("زيارة تعريفية", ["لا", "نعم"], horizontal=True)
        has_order = c3.radio("طلبية", ["لا", "نعم"], horizontal=True)
        has_collection = c4.radio("تحصيل", ["لا", "نعم"], horizontal=True)

        st.markdown("#### منتجات الطلبية")
        order_df = lines_editor("order_lines")
        st.markdown("#### منتجات التحصيل")
        collection_df = lines_editor("collection_lines")
        receipt_number = st.text_input("رقم الوصل")
        st.file_uploader("صورة الوصل", type=["png", "jpg", "jpeg"])
        notes = st.text_area("ملاحظات الزيارة")

        submitted = st.form_submit_button("تسجيل الزيارة")

    if not submitted:
        return

    collection_lines = make_lines(selected_quantities(collection_df)) if has_collection == "نعم" else []
    order_lines = make_lines(selected_quantities(order_df)) if has_order == "نعم" else []
    try:
        collection, orders = VisitService(store).submit(
            visit_date.isoformat(), pharmacy, collection_lines, order_lines, receipt_number.strip()
        )
    except PharmaFieldError as exc:
        st.error(str(exc))
        return

    if notes:
        st.caption(notes)
    st.success(f"تم تسجيل الزيارة بنجاح! ({len(orders)} طلبية)")
    if collection is not None:
        st.metric("المجموع الكلي", money(collection.amount))
        queue_receipt(collection.pharmacy, collection.date, collection.amount, collection.products)
        render_queued_receipt()


# ---------------------------
# Page: Financial collector
# ---------------------------
def page_financial_collector():
    st.subheader("المحصل المالي")
    show_flash()

    st.metric("إجمالي الأموال المحصلة (المبالغ المعتمدة فقط)", money(collector.total_collected()))
    status_filter = st.selectbox("الحالة", list(STATUS_FILTERS), format_func=STATUS_FILTERS.get)

    st.markdown("### التحصيلات المالية")
    collections = collector.indexed_collections(status_filter)
    if not collections:
        st.info("لا توجد تحصيلات حالياً")
    for pos, c in collections:
        cols = st.columns([2, 3, 2, 2, 4, 2, 3])
        cols[0].write(c.date)
        cols[1].write(c.pharmacy)
        cols[2].write(money(c.amount))
        cols[3].write(c.receipt_number or "--")
        cols[4].write("\n".join(f"- {p.medicine} ×{p.quantity} = {money(p.total_price)}" for p in c.products) or "--")
        cols[5].markdown(status_badge(c.status), unsafe_allow_html=True)
        with cols[6]:
            if c.status == PENDING:
                if st.button("✔ موافقة", key=f"col-approve-{pos}"):
                    run_action(lambda: collector.approve(COLLECTIONS, c.id, position=pos), "تمت الموافقة على التحصيل")
                if st.button("✖ رفض", key=f"col-reject-{pos}"):
                    run_action(lambda: collector.reject(COLLECTIONS, c.id, position=pos), "تم رفض التحصيل")
            if st.button("🖨 طباعة", key=f"col-print-{pos}"):
                queue_receipt(c.pharmacy, c.date, c.amount, c.products)

    st.markdown("### طلبيات الصيدليات")
    groups = collector.grouped_orders(status_filter)
    if not groups:
        st.info("لا توجد طلبيات حالياً")
    for g in groups:
        title = f"{g.pharmacy} • {len(g.products)} صنف • {money(g.total_amount)} • {g.date}"
        with st.expander(title):
            st.markdown(status_badge(g.status), unsafe_allow_html=True)
            lines = pd.DataFrame([
                {"الدواء": p.medicine, "السعر": p.price, "الكمية": p.quantity, "المجموع": p.total_price}
                for p in g.products
            ])
            st.dataframe(lines, use_container_width=True, hide_index=True)
            st.write(f"**الإجمالي:** {money(g.total_amount)}")
            if g.status == PENDING:
                c1, c2 = st.columns(2)
                if c1.button("✔ موافقة على المجموعة", key=f"grp-approve-{g.group_id}"):
                    run_action(lambda: collector.approve_group(g.group_id), "تمت الموافقة على المجموعة")
                if c2.button("✖ رفض المجموعة", key=f"grp-reject-{g.group_id}"):
                    run_action(lambda: collector.reject_group(g.group_id), "تم رفض المجموعة")

    render_queued_receipt()


# ---------------------------
# Page: Order collector
# ---------------------------
def page_order_collector():
    st.subheader("محصل الطلبيات")
    show_flash()

    groups = collector.grouped_orders(key_fn=pharmacy_date_key)
    if not groups:
        st.info("لا توجد طلبيات حالياً")
        return

    for g in groups:
        title = f"{g.pharmacy} • {g.date} • {money(g.total_amount)}"
        with st.expander(title, expanded=g.status == PENDING):
            st.markdown(status_badge(g.status), unsafe_allow_html=True)
            # Ids may repeat across records; widget keys use the record's position instead.
            for pos, order in zip(g.positions, g.members):
                for idx, line in enumerate(order.products):
                    row = f"{g.group_id}-{pos}-{idx}"
                    cols = st.columns([3, 2, 2, 2, 2, 3])
                    cols[0].write(line.medicine)
                    cols[1].write(money(line.price))
                    delivered = cols[2].number_input(
                        "الكمية", min_value=0, value=int(line.quantity), step=1,
                        key=f"qty-{row}", label_visibility="collapsed",
                    )
                    cols[3].write(money(line.total_price))
                    cols[4].markdown(status_badge(order.status), unsafe_allow_html=True)
                    with cols[5]:
                        if delivered != line.quantity and st.button("حفظ الكمية", key=f"save-{row}"):
                            run_action(
                                lambda: collector.adjust_delivered_quantity(
                                    order.id, int(delivered), product_index=idx, position=pos
                                ),
                                "تم تحديث الكمية",
                            )
                        if idx == 0 and order.status == PENDING:
                            if st.button("✔", key=f"ord-approve-{row}"):
                                run_action(
                                    lambda: collector.approve(ORDERS, order.id, position=pos),
                                    "تمت الموافقة على الطلبية",
                                )
                            if st.button("✖", key=f"ord-reject-{row}"):
                                run_action(
                                    lambda: collector.reject(ORDERS, order.id, position=pos),
                                    "تم رفض الطلبية",
                                )

            if g.status == PENDING:
                c1, c2 = st.columns(2)
                if c1.button("✔ موافقة على الكل", key=f"oc-approve-{g.group_id}"):
                    run_action(
                        lambda: collector.approve_group(g.group_id, key_fn=pharmacy_date_key),
                        "تمت الموافقة على جميع الطلبيات",
                    )
                if c2.button("✖ رفض الكل", key=f"oc-reject-{g.group_id}"):
                    run_action(
                        lambda: collector.reject_group(g.group_id, key_fn=pharmacy_date_key),
                        "تم رفض جميع الطلبيات",
                    )


# ---------------------------
# Page: Missing items
# ---------------------------
def page_missing_items():
    st.subheader("الطلبيات المفقودة")
    show_flash()

    tracker = MissingItemsTracker(store)
    items = tracker.items()

    stats = missing_stats(items)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("إجمالي العناصر المفقودة", stats["total_missing_items"])
    c2.metric("إجمالي الكمية المفقودة", stats["total_missing_quantity"])
    c3.metric("الصيدليات المتأثرة", stats["affected_pharmacies"])
    c4.metric("الدواء الأكثر فقداناً", stats["top_missing_medicine"], f"{stats['top_missing_quantity']} وحدة")

    # Filters
    c1, c2, c3, c4 = st.columns(4)
    search = c1.text_input("بحث (الدواء أو الصيدلية)")
    dates = sorted({i.date for i in items if i.date})
    date_filter = c2.selectbox("التاريخ", [""] + dates)
    pharmacy_filter = c3.selectbox("الصيدلية", [""] + sorted({i.pharmacy for i in items if i.pharmacy}))
    medicine_filter = c4.selectbox("الدواء", [""] + sorted({i.medicine for i in items if i.medicine}))

    filtered = filter_missing_items(items, search, date_filter, pharmacy_filter, medicine_filter)

    filename, csv = tracker.export_csv(filtered)
    st.download_button("تصدير البيانات", data=csv, file_name=filename, mime="text/csv")

    if not filtered:
        st.info("لا توجد عناصر مفقودة")
        return

    for n, item in enumerate(filtered):
        cols = st.columns([2, 3, 2, 2, 2, 2, 1])
        cols[0].write(item.date)
        cols[1].write(item.pharmacy)
        cols[2].write(item.medicine)
        cols[3].write(item.original_quantity)
        cols[4].write(item.quantity_missing)
        cols[5].write(format_percentage(item))
        if cols[6].button("🗑", key=f"del-{n}-{item.id}"):
            run_action(lambda: tracker.delete(item.id), "تم حذف العنصر")


# ---------------------------
# Page: Pharmacy dashboard
# ---------------------------
def page_dashboard():
    st.subheader("لوحة تحكم الصيدليات")
    visits = load_demo_visits(settings.demo_size, settings.demo_seed)

    c1, c2 = st.columns(2)
    with c1:
        start = st.date_input("من تاريخ", value=date.today() - relativedelta(months=12))
    with c2:
        end = st.date_input("إلى تاريخ", value=date.today())

    c1, c2, c3, c4 = st.columns(4)
    pharmacy = c1.selectbox("الصيدلية", [""] + sorted(visits["pharmacy"].unique().tolist()))
    city = c2.selectbox("المدينة", [""] + sorted(visits["city"].unique().tolist()))
    type_ = c3.selectbox("النوع", [""] + list(TYPE_LABELS), format_func=lambda t: TYPE_LABELS.get(t, "الكل"))
    status = c4.selectbox("الحالة", [""] + list(VISIT_STATUS_LABELS), format_func=lambda s: VISIT_STATUS_LABELS.get(s, "الكل"))

    df = filter_visits(visits, start, end, pharmacy=pharmacy, status=status, type_=type_, city=city)
    if df.empty:
        st.info("لا توجد زيارات في الفترة المحددة")
        return

    stats = pharmacy_stats(df)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("الصيدليات", stats["total_pharmacies"])
    c2.metric("إجمالي التحصيلات", money(stats["total_collections"]))
    c3.metric("إجمالي الطلبيات (وحدة)", stats["total_orders"])
    c4.metric("متوسط قيمة التحصيل", money(stats["avg_order_value"]))

    st.markdown("### اتجاه التحصيلات")
    trend = collection_trend(df)
    if not trend.empty:
        st.line_chart(trend.set_index("date"))

    c1, c2 = st.columns(2)
    with c1:
        st.markdown("#### أفضل الصيدليات")
        st.dataframe(pd.DataFrame(stats["top_pharmacies"], columns=["الصيدلية", "المبلغ"]), use_container_width=True, hide_index=True)
    with c2:
        st.markdown("#### الأدوية الأكثر طلباً")
        st.dataframe(pd.DataFrame(stats["top_medicines"], columns=["الدواء", "الكمية"]), use_container_width=True, hide_index=True)

    st.markdown("### أداء المندوبين")
    perf = representative_performance(df)
    st.bar_chart(perf.set_index("representative")[["visits", "orders"]])
    st.dataframe(perf, use_container_width=True, hide_index=True)

    c1, c2, c3 = st.columns(3)
    c1.bar_chart(pd.Series(stats["status_distribution"], name="count"))
    c2.bar_chart(pd.Series(stats["type_distribution"], name="count"))
    c3.bar_chart(pd.Series(stats["city_distribution"], name="count"))

    st.markdown(f"#### تفاصيل الزيارات ({len(df)})")
    st.dataframe(
        df.head(50)[["date", "time", "pharmacy", "city", "representative", "type", "status", "amount", "medicine", "quantity"]],
        use_container_width=True,
        hide_index=True,
    )

    st.download_button(
        "تصدير البيانات",
        data=to_csv_bytes(visits_export_frame(df)),
        file_name=export_filename("pharmacy_data"),
        mime="text/csv",
    )


# ---------------------------
# Router
# ---------------------------
if page == "🏪 Pharmacy Visit":
    page_visit()
elif page == "💵 Financial Collector":
    page_financial_collector()
elif page == "🛒 Order Collector":
    page_order_collector()
elif page == "⚠️ Missing Items":
    page_missing_items()
elif page == "📊 Pharmacy Dashboard":
    page_dashboard()
