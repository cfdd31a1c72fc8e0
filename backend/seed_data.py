"""
Demo data seeding script
- Items 12, jobs 4, fleet assets 6, ~60 movement events, cycle counts
- Usage: cd backend && python seed_data.py [tenant]
"""

import os
import random
import sys

# make the ims package importable when run from backend/
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from ims.database import Base, SessionLocal, engine
from ims.ledger.events import DAY_MS, now_ms
from ims.models import FleetAsset, InventoryCount, InventoryEvent, Item, Job
from ims.models.fleet_asset import AssetStatus, AssetType
from ims.services.event_store import new_event_id

ITEMS = [
    # code, name, category, unit price, reorder point
    ("PIPE-PVC-2", "PVC pipe 2in x 10ft", "Plumbing", 8.5, 20),
    ("PIPE-CU-075", "Copper pipe 3/4in x 10ft", "Plumbing", 42.0, 10),
    ("WIRE-12-250", "12 AWG wire 250ft", "Electrical", 96.0, 4),
    ("BOX-4SQ", "4in square box", "Electrical", 2.1, 50),
    ("BRK-20A", "20A breaker", "Electrical", 11.75, 12),
    ("DRYWALL-12", "Drywall 1/2in 4x8", "Drywall", 14.2, 30),
    ("SCREW-DW-1-5", "Drywall screws 1-5/8in (5lb)", "Fasteners", 24.0, 8),
    ("ANCHOR-38", "Wedge anchor 3/8in (50)", "Fasteners", 31.0, 5),
    ("GLOVE-L", "Work gloves L (12pk)", "PPE", 18.0, 6),
    ("HARNESS", "Fall-arrest harness", "PPE", 145.0, 2),
    ("DRILL-HAM", "Hammer drill", "Tools", 289.0, 1),
    ("LADDER-8", "Fiberglass ladder 8ft", "Tools", 210.0, 1),
]

JOBS = [
    ("J-1001", "Riverside clinic fit-out", "open"),
    ("J-1002", "Maple St. duplex", "open"),
    ("J-1003", "Harbor warehouse retrofit", "open"),
    ("J-0990", "Library HVAC", "completed"),
]


def seed_catalog(session, tenant):
    for code, name, category, price, reorder in ITEMS:
        session.add(Item(
            tenant_id=tenant, code=code, name=name, category=category,
            unit_price=price, reorder_point=reorder, low_stock_enabled=True,
        ))
    for code, name, status in JOBS:
        session.add(Job(tenant_id=tenant, code=code, name=name, status=status))
    print(f"  items: {len(ITEMS)}, jobs: {len(JOBS)}")


def seed_fleet(session, tenant):
    now = now_ms()
    assets = [
        FleetAsset(tenant_id=tenant, asset_type=AssetType.VEHICLE, code="TRK-01", name="Service truck 1",
                   make="Ford", model="F-250", year=2021, plate="7KXR221", mileage=48210,
                   assigned_project="J-1001", next_service_at="2026-01-15"),
        FleetAsset(tenant_id=tenant, asset_type=AssetType.VEHICLE, code="TRK-02", name="Service truck 2",
                   make="Ram", model="2500", year=2019, plate="6HTB903", mileage=91544,
                   status=AssetStatus.MAINTENANCE),
        FleetAsset(tenant_id=tenant, asset_type=AssetType.VEHICLE, code="VAN-01", name="Cargo van",
                   make="Ford", model="Transit", year=2022, plate="8PLM410", mileage=22010,
                   assigned_project="J-1002"),
        FleetAsset(tenant_id=tenant, asset_type=AssetType.EQUIPMENT, code="LIFT-01", name="Scissor lift 19ft",
                   manufacturer="Genie", serial="GS1930-77812", usage_hours=812,
                   assigned_project="J-1003", status=AssetStatus.IN_USE),
        FleetAsset(tenant_id=tenant, asset_type=AssetType.EQUIPMENT, code="GEN-01", name="Generator 7kW",
                   manufacturer="Honda", serial="EB7000-11029", usage_hours=1430),
        FleetAsset(tenant_id=tenant, asset_type=AssetType.EQUIPMENT, code="COMP-01", name="Air compressor",
                   manufacturer="DeWalt", serial="DXCM-5521", usage_hours=210, tags=["shop"]),
    ]
    for asset in assets:
        asset.last_activity_at = now - random.randint(0, 10) * DAY_MS
        session.add(asset)
    print(f"  fleet assets: {len(assets)}")


def seed_events(session, tenant):
    now = now_ms()
    events = []

    def add(kind, code, qty, days_ago, **fields):
        event = InventoryEvent(
            id=new_event_id(), tenant_id=tenant, code=code, type=kind, qty=qty,
            ts=now - int(days_ago * DAY_MS), user_email="demo@example.com", **fields,
        )
        events.append(event)
        return event

    # opening receipts
    for code, _, _, _, reorder in ITEMS:
        add("in", code, reorder * random.randint(2, 4), 40, location="Main yard")

    # day-to-day checkouts and returns
    active_jobs = [j[0] for j in JOBS if j[2] == "open"]
    for _ in range(25):
        code = random.choice(ITEMS)[0]
        job = random.choice(active_jobs)
        days_ago = random.uniform(1, 28)
        due = now - int((days_ago - 10) * DAY_MS)
        add("out", code, random.randint(1, 3), days_ago, job_id=job,
            return_date=str(due), location=f"Site {job}")

    add("out", "LADDER-8", 1, 9, job_id="J-1001", return_date=str(now - 2 * DAY_MS))
    add("return", "LADDER-8", 1, 2, job_id="J-1001", location="Main yard")
    add("reserve", "DRYWALL-12", 40, 5, job_id="J-1002")
    add("reserve", "WIRE-12-250", 3, 3, job_id="J-1003")
    add("reserve_release", "WIRE-12-250", 1, 1, job_id="J-1003")
    add("consume", "GLOVE-L", 2, 6, status="consumed", reason="used on site")
    add("consume", "PIPE-CU-075", 1, 4, status="damaged", reason="damaged in transit")

    # purchase orders: one linked receipt, one FIFO-matched, one still open and late
    po1 = add("ordered", "BRK-20A", 24, 12, eta=str(now - 5 * DAY_MS), name="20A breaker")
    add("in", "BRK-20A", 24, 6, source_id=po1.id, source_type="order")
    add("ordered", "SCREW-DW-1-5", 10, 9, job_id="J-1002", eta=str(now - 3 * DAY_MS))
    add("in", "SCREW-DW-1-5", 10, 2, job_id="J-1002")
    add("ordered", "HARNESS", 4, 8, eta=str(now - 1 * DAY_MS))
    add("ordered", "DRYWALL-12", 60, 1, job_id="J-1002", eta=str(now + 4 * DAY_MS))

    session.add_all(events)
    print(f"  events: {len(events)}")


def seed_counts(session, tenant):
    now = now_ms()
    for code in ("PIPE-PVC-2", "BOX-4SQ", "BRK-20A", "DRYWALL-12"):
        session.add(InventoryCount(
            tenant_id=tenant, code=code, qty=random.randint(20, 60),
            counted_at=now - random.randint(1, 20) * DAY_MS, user_email="demo@example.com",
        ))
    print("  counts: 4")


def main():
    tenant = sys.argv[1] if len(sys.argv) > 1 else "default"
    random.seed(42)

    print("creating tables...")
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    try:
        if session.query(Item).filter(Item.tenant_id == tenant).count() > 0:
            print(f"tenant '{tenant}' already has data, skipping")
            return
        print(f"seeding tenant '{tenant}'...")
        seed_catalog(session, tenant)
        seed_fleet(session, tenant)
        seed_events(session, tenant)
        seed_counts(session, tenant)
        session.commit()
        print("done")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
