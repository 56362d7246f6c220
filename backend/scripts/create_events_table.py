"""
Create the `events` table and its index.

Run from `backend/` (or with the project installed) so `settings` is importable:
    python -m scripts.create_events_table
"""

from settings import settings
import psycopg

DDL = '''
CREATE EXTENSION IF NOT EXISTS pgcrypto;

CREATE TABLE IF NOT EXISTS events (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    type TEXT NOT NULL CHECK (type IN ('feed', 'sleep', 'diaper')),
    ts TIMESTAMP WITH TIME ZONE NOT NULL,
    end_time TIMESTAMP WITH TIME ZONE,
    feed_type TEXT CHECK (feed_type IN ('bottle', 'breastfeeding', 'solids')),
    amount DOUBLE PRECISION,
    left_duration INTEGER,
    right_duration INTEGER,
    sleep_location TEXT,
    diaper_type TEXT CHECK (diaper_type IN ('wet', 'dirty')),
    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT now(),
    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_events_ts ON events (ts);
'''

print('Connecting to', settings.db_url)
with psycopg.connect(settings.db_url, connect_timeout=settings.db_connect_timeout) as conn:
    with conn.cursor() as cur:
        cur.execute(DDL)
    conn.commit()
print('DDL applied')
