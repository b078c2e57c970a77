"""
pharmafield.reports

Dashboard aggregates over a visits DataFrame, plus the CSV export helpers
shared by the dashboard and the missing-items page.

Expected visit columns: date, time, pharmacy, pharmacy_id, city,
representative, type, status, amount, medicine, quantity, products.
"""

from datetime import date
from typing import Optional, Protocol

import pandas as pd

VISIT_EXPORT_HEADER = ["التاريخ", "الصيدلية", "النوع", "الحالة", "المبلغ", "المندوب"]

TYPE_LABELS = {
    "collection": "تحصيل",
    "order": "طلبية",
    "visit": "زيارة",
    "promotion": "ترويج",
}

VISIT_STATUS_LABELS = {
    "pending": "قيد الانتظار",
    "approved": "معتمد",
    "rejected": "مرفوض",
    "completed": "مكتمل",
}


class VisitSource(Protocol):
    def visits(self) -> pd.DataFrame:
        ...


def export_filename(prefix: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{prefix}_{today.strftime('%Y-%m-%d')}.csv"


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")


# ---------------------------
# Filtering
# ---------------------------
def filter_visits(
    df: pd.DataFrame,
    start: Optional[date] = None,
    end: Optional[date] = None,
    pharmacy: str = "",
    status: str = "",
    type_: str = "",
    city: str = "",
    representative: str = "",
    medicine: str = "",
) -> pd.DataFrame:
    mask = pd.Series(True, index=df.index)
    if start is not None:
        mask &= df["date"] >= start
    if end is not None:
        mask &= df["date"] <= end
    if pharmacy:
        mask &= df["pharmacy"].str.contains(pharmacy, regex=False, na=False)
    if representative:
        mask &= df["representative"].str.contains(representative, regex=False, na=False)
    if medicine:
        mask &= df["medicine"].fillna("").str.contains(medicine, regex=False)
    if status:
        mask &= df["status"] == status
    if type_:
        mask &= df["type"] == type_
    if city:
        mask &= df["city"] == city
    return df[mask]


# ---------------------------
# Aggregates
# ---------------------------
def pharmacy_stats(df: pd.DataFrame) -> dict:
    collections = df[(df["type"] == "collection") & (df["amount"].fillna(0) > 0)]
    orders = df[df["type"] == "order"]

    top_pharmacies = (
        collections.groupby("pharmacy")["amount"].sum().sort_values(ascending=False).head(5)
    )
    top_medicines = (
        orders.dropna(subset=["medicine"]).groupby("medicine")["quantity"].sum()
        .sort_values(ascending=False).head(10)
    )

    return {
        "total_pharmacies": int(df["pharmacy_id"].nunique()),
        "total_collections": round(float(collections["amount"].sum()), 2),
        "total_orders": int(orders["quantity"].fillna(0).sum()),
        "avg_order_value": round(float(collections["amount"].mean()), 2) if not collections.empty else 0.0,
        "top_pharmacies": list(top_pharmacies.items()),
        "top_medicines": [(name, int(qty)) for name, qty in top_medicines.items()],
        "status_distribution": df["status"].value_counts().to_dict(),
        "type_distribution": df["type"].value_counts().to_dict(),
        "city_distribution": df["city"].value_counts().to_dict(),
    }


def collection_trend(df: pd.DataFrame) -> pd.DataFrame:
    collections = df[(df["type"] == "collection") & (df["amount"].fillna(0) > 0)]
    if collections.empty:
        return pd.DataFrame(columns=["date", "amount"])
    trend = collections.groupby("date")["amount"].sum().round(2).reset_index()
    return trend.sort_values("date").reset_index(drop=True)


def representative_performance(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=["representative", "visits", "collections", "orders"])
    work = df.assign(
        collections=df["amount"].where(df["type"] == "collection", 0).fillna(0),
        orders=df["quantity"].where(df["type"] == "order", 0).fillna(0),
    )
    perf = work.groupby("representative").agg(
        visits=("type", "size"),
        collections=("collections", "sum"),
        orders=("orders", "sum"),
    ).reset_index()
    perf["collections"] = perf["collections"].round(2)
    perf["orders"] = perf["orders"].astype(int)
    return perf.sort_values("visits", ascending=False).reset_index(drop=True)


def visits_export_frame(df: pd.DataFrame) -> pd.DataFrame:
    out = df[["date", "pharmacy", "type", "status", "amount", "representative"]].copy()
    out["amount"] = out["amount"].apply(lambda v: "" if pd.isna(v) or not v else v)
    out.columns = VISIT_EXPORT_HEADER
    return out
