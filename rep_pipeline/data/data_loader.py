"""
Data loader for recorded two-sensor sessions.
"""
import logging
from pathlib import Path
from typing import Iterator, Tuple
import numpy as np
import pandas as pd
from ..core.interfaces import Sample, SessionFormatError
from .companion_slot import CompanionSlot

logger = logging.getLogger("SessionLoader")

REQUIRED_COLUMNS = ['timestamp', 'source', 'ax', 'ay', 'az', 'gx', 'gy', 'gz']
SOURCES = ('phone', 'companion')


class SessionLoader:
    def __init__(self, data_dir: str = "."):
        """Initialize session loader with data directory."""
        self.data_dir = Path(data_dir)

    def load_session(self, filename: str) -> pd.DataFrame:
        """
        Load a session CSV.

        Expected columns: timestamp, source, ax, ay, az, gx, gy, gz, where source
        is 'phone' or 'companion'. Rows are returned sorted by timestamp (in
        seconds).
        """
        path = self.data_dir / filename
        try:
            df = pd.read_csv(path)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise SessionFormatError(f"Could not read session {path}: {e}") from e

        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise SessionFormatError(f"Session {path} is missing columns {missing}")

        df['source'] = df['source'].astype(str).str.strip().str.lower()
        unknown = set(df['source'].unique()) - set(SOURCES)
        if unknown:
            raise SessionFormatError(f"Session {path} has unknown sources {sorted(unknown)}")

        # Convert to seconds if in milliseconds
        timestamps = df['timestamp'].to_numpy(dtype=float)
        phone_times = timestamps[df['source'].to_numpy() == 'phone']
        if len(phone_times) > 1 and np.median(np.diff(phone_times)) > 1.0:
            df['timestamp'] = timestamps / 1000.0

        # Companion rows sharing a phone timestamp apply to that tick
        order = (df['source'] != 'companion').astype(int)
        df = (
            df.assign(_order=order)
            .sort_values(['timestamp', '_order'], kind='stable')
            .drop(columns='_order')
            .reset_index(drop=True)
        )
        logger.info(
            f"Loaded {path}: {(df['source'] == 'phone').sum()} phone, "
            f"{(df['source'] == 'companion').sum()} companion samples"
        )
        return df

    def replay(self, filename: str) -> Iterator[Tuple[float, Sample, Sample]]:
        """
        Yield (timestamp, phone, companion) for every phone sample.

        The companion value is the latest companion sample at or before the
        phone timestamp, or zero if none has arrived yet.
        """
        df = self.load_session(filename)
        slot = CompanionSlot()

        for row in df.itertuples(index=False):
            sample = Sample(accel=(row.ax, row.ay, row.az), gyro=(row.gx, row.gy, row.gz))
            if row.source == 'companion':
                slot.update(sample)
            else:
                yield float(row.timestamp), sample, slot.latest()

        if not slot.connected:
            logger.warning(f"No companion samples in {filename}, companion channels were zero")
