"""
pharmafield.demo_data

Seeded synthetic pharmacy visits for the read-only dashboard. This is a
stand-in VisitSource; nothing here touches the persisted record arrays.
"""

from datetime import date

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

PHARMACIES = [
    # name, id, city
    ("صيدلية الشفاء الطبية", "SHIFA_001", "الرياض"),
    ("صيدلية النهدي المركزية", "NAHDI_002", "جدة"),
    ("صيدلية الدواء الذكية", "SMART_003", "الدمام"),
    ("صيدلية الحياة الصحية", "HAYAT_004", "الرياض"),
    ("صيدلية الرعاية المتقدمة", "CARE_005", "مكة المكرمة"),
    ("صيدلية السلام الطبية", "SALAM_006", "المدينة المنورة"),
    ("صيدلية الصحة الشاملة", "HEALTH_007", "الطائف"),
    ("صيدلية المدينة الحديثة", "MODERN_008", "الخبر"),
    ("صيدلية الأمل الطبية", "AMAL_009", "بريدة"),
    ("صيدلية الوفاء الذهبية", "WAFA_010", "أبها"),
    ("صيدلية التقنية الطبية", "TECH_011", "الرياض"),
    ("صيدلية الخليج الطبية", "GULF_012", "الدمام"),
]

MEDICINES = [
    ("Panadol", 15), ("Brufen", 20), ("Nexium", 45), ("Lipitor", 85),
    ("Concor", 65), ("Glucophage", 25), ("Augmentin", 40), ("Amoxil", 30),
    ("Zithromax", 55), ("Crestor", 95), ("Ventolin", 35), ("Lantus", 150),
    ("Voltaren", 25), ("Plavix", 120), ("Januvia", 110), ("Symbicort", 180),
    ("Humira", 2500), ("Xarelto", 200), ("Eliquis", 220), ("Ozempic", 450),
]

REPRESENTATIVES = [
    "أحمد محمد الشمري",
    "فاطمة علي القحطاني",
    "خالد عبدالله العتيبي",
    "نورا سعد الدوسري",
    "محمد حسن الغامدي",
    "عائشة محمد الأنصاري",
    "سارة أحمد الثقفي",
    "عبدالرحمن علي الخالدي",
]

TYPES = ["collection", "order", "visit", "promotion"]
STATUSES = ["pending", "approved", "rejected", "completed"]
VAT = 0.15


def _products(rng, count):
    rows = []
    for _ in range(count):
        name, unit_price = MEDICINES[rng.integers(len(MEDICINES))]
        qty = int(rng.integers(1, 51))
        price = round(unit_price + rng.uniform(-5, 5), 2)
        rows.append({"medicine": name, "quantity": qty, "price": price, "totalPrice": round(qty * price, 2)})
    return rows


def generate_demo_visits(count=500, seed=42, today=None) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    today = today or date.today()
    start = today - relativedelta(months=12)
    span = (today - start).days

    rows = []
    for i in range(count):
        pharmacy, pharmacy_id, city = PHARMACIES[rng.integers(len(PHARMACIES))]
        visit_type = TYPES[rng.integers(len(TYPES))]
        row = {
            "id": i + 1,
            "date": today - relativedelta(days=int(rng.integers(0, span + 1))),
            "time": f"{int(rng.integers(8, 20)):02d}:{int(rng.integers(0, 60)):02d}",
            "pharmacy": pharmacy,
            "pharmacy_id": pharmacy_id,
            "city": city,
            "representative": REPRESENTATIVES[rng.integers(len(REPRESENTATIVES))],
            "type": visit_type,
            "status": STATUSES[rng.integers(len(STATUSES))],
            "amount": np.nan,
            "receipt_number": None,
            "medicine": None,
            "quantity": np.nan,
            "products": [],
        }
        if visit_type == "collection":
            products = _products(rng, int(rng.integers(1, 6)))
            subtotal = sum(p["totalPrice"] for p in products)
            discount = int(rng.integers(5, 15)) if rng.random() > 0.8 else 0
            row["amount"] = round(subtotal * (1 - discount / 100) + subtotal * VAT, 2)
            row["receipt_number"] = f"RCP-{seed}-{i}"
            row["products"] = products
        elif visit_type == "order":
            row["medicine"] = MEDICINES[rng.integers(len(MEDICINES))][0]
            row["quantity"] = int(rng.integers(1, 101))
        rows.append(row)

    df = pd.DataFrame(rows)
    return df.sort_values("date", ascending=False).reset_index(drop=True)


class DemoVisitSource:
    def __init__(self, count=500, seed=42):
        self.count = count
        self.seed = seed

    def visits(self) -> pd.DataFrame:
        return generate_demo_visits(self.count, self.seed)
