
import sys
from pathlib import Path

import pandas as pd

# Add src to path
sys.path.append(str(Path.cwd() / "src"))

from restroom_directory.config import settings
from restroom_directory.data.criteria import FEATURE_FLAGS
from restroom_directory.data.database import create_db_engine, create_session_factory, init_db
from restroom_directory.data.repository import RestroomRepository
from restroom_directory.engine import check_restroom_id
from restroom_directory.exceptions import InvalidRestroomIdError

INPUT_FILE = Path(r"data/raw/restrooms.csv")

RESTROOM_COLUMNS = [
    "title", "address", "category", "description", "latitude", "longitude",
    "website", "hours_description", "price_range", "thumbnail",
]
ADDRESS_COLUMNS = ["street", "city", "state", "postal_code", "country", "borough"]
TRUTHY = {"1", "true", "yes", "y", "t"}


def _clean(value):
    """NaN -> None, strings stripped."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def load_csv(path: Path) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str)
    df.columns = [c.strip().lower() for c in df.columns]

    if "title" not in df.columns and "name" in df.columns:
        df = df.rename(columns={"name": "title"})
    if "title" not in df.columns:
        raise ValueError(f"{path} has no 'title' (or 'name') column. Found {df.columns.tolist()}")

    # Coordinates: unparseable values become NaN -> stored as unlocated
    for col in ("latitude", "longitude"):
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")

    before = len(df)
    df = df[df["title"].notna() & (df["title"].str.strip() != "")]
    if len(df) < before:
        print(f"WARNING: dropped {before - len(df)} rows without a title")
    return df


def import_restrooms(path: Path = INPUT_FILE, database_url: str | None = None) -> int:
    """Load restrooms (and feature flags / address parts when present) from a CSV."""
    if not path.exists():
        print(f"Error: {path} not found.")
        return 0

    print(f"--- Importing restrooms from {path} ---")
    df = load_csv(path)

    engine = create_db_engine(database_url)
    init_db(engine)
    session_factory = create_session_factory(engine)

    imported = 0
    skipped = 0
    with session_factory() as session:
        repo = RestroomRepository(session)
        for index, row in df.iterrows():
            restroom_id = _clean(row.get("id"))
            if restroom_id is not None:
                try:
                    restroom_id = check_restroom_id(str(restroom_id))
                except InvalidRestroomIdError:
                    print(f"WARNING: skipping row {index}: unusable id {restroom_id!r}")
                    skipped += 1
                    continue

            fields = {c: _clean(row[c]) for c in RESTROOM_COLUMNS if c in df.columns}
            bathroom = repo.add_restroom(restroom_id=restroom_id, **fields)

            address = {c: _clean(row[c]) for c in ADDRESS_COLUMNS if c in df.columns}
            if any(v is not None for v in address.values()):
                repo.upsert_address(bathroom.id, **address)

            for flag in FEATURE_FLAGS:
                raw = _clean(row.get(flag))
                if raw is not None:
                    repo.set_feature(bathroom.id, flag, enabled=str(raw).lower() in TRUTHY)

            if fields.get("category"):
                repo.add_category(bathroom.id, fields["category"])
            imported += 1

        session.commit()

    engine.dispose()

    print("\n--- Import Stats ---")
    print(f"Total Rows: {len(df)}")
    print(f"Imported: {imported}")
    print(f"Skipped (bad id): {skipped}")
    if "latitude" in df.columns:
        print(f"Unlocated: {df['latitude'].isna().sum()}")
    return imported


if __name__ == "__main__":
    settings.setup()
    import_restrooms(Path(sys.argv[1]) if len(sys.argv) > 1 else INPUT_FILE)
