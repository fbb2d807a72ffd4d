"""
Insights Queries Module for the rate intelligence backend.

Provides the parameterized PostgreSQL statements behind the storage
capabilities in rate_intelligence.core.database:

- rate_inventory: current rates per property / room type / rate plan / date
- competitor_rate: raw competitor observations captured by refreshes
- ai_suggestion: persisted recommendations and their apply lifecycle

Optional list filters use the `$n::text[] IS NULL OR col = ANY($n)` idiom so
each statement stays static and fully parameterized.
"""


# =============================================================================
# CONSTANTS
# =============================================================================

# Trailing window used for historical performance signals
HISTORY_WINDOW_DAYS: int = 28

# The history window is split in two halves to derive the occupancy trend
HISTORY_TREND_SPLIT_DAYS: int = 14


# =============================================================================
# SCHEMA
# =============================================================================

SCHEMA_DDL: str = """
CREATE TABLE IF NOT EXISTS rate_inventory (
    id              TEXT PRIMARY KEY,
    property_id     TEXT NOT NULL,
    room_type_id    TEXT NOT NULL,
    room_type_code  TEXT NOT NULL,
    rate_plan_id    TEXT NOT NULL,
    date            DATE NOT NULL,
    rate            NUMERIC(10, 2) NOT NULL,
    inventory       INTEGER NOT NULL DEFAULT 0,
    rooms_sold      INTEGER NOT NULL DEFAULT 0,
    occupancy       NUMERIC(5, 2),
    sync_source     TEXT NOT NULL DEFAULT 'manual',
    updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    UNIQUE (property_id, room_type_id, rate_plan_id, date)
);

CREATE TABLE IF NOT EXISTS competitor_rate (
    property_id      TEXT NOT NULL,
    competitor_id    TEXT NOT NULL,
    competitor_name  TEXT NOT NULL,
    room_type_code   TEXT NOT NULL,
    date             DATE NOT NULL,
    rate             NUMERIC(10, 2) NOT NULL,
    currency         TEXT NOT NULL DEFAULT 'USD',
    available        BOOLEAN NOT NULL,
    collected_at     TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    PRIMARY KEY (property_id, competitor_id, room_type_code, date)
);

CREATE TABLE IF NOT EXISTS ai_suggestion (
    id              TEXT PRIMARY KEY,
    property_id     TEXT NOT NULL,
    room_type_id    TEXT NOT NULL,
    rate_plan_id    TEXT NOT NULL,
    date            DATE NOT NULL,
    current_rate    NUMERIC(10, 2) NOT NULL,
    suggested_rate  NUMERIC(10, 2) NOT NULL,
    confidence      INTEGER NOT NULL CHECK (confidence BETWEEN 0 AND 100),
    reasoning       TEXT NOT NULL,
    factors         JSONB NOT NULL,
    is_applied      BOOLEAN NOT NULL DEFAULT FALSE,
    applied_at      TIMESTAMPTZ,
    applied_by      TEXT,
    created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS ai_suggestion_property_date_idx
    ON ai_suggestion (property_id, date);
"""


# =============================================================================
# RATE INVENTORY
# =============================================================================

SELECT_RATE_RECORDS: str = """
    SELECT
        id,
        property_id,
        room_type_id,
        room_type_code,
        rate_plan_id,
        date,
        rate,
        inventory
    FROM rate_inventory
    WHERE property_id = $1
      AND date >= $2
      AND date <= $3
      AND ($4::text[] IS NULL OR room_type_id = ANY($4::text[]))
      AND ($5::text[] IS NULL OR rate_plan_id = ANY($5::text[]))
    ORDER BY date ASC, room_type_code ASC, rate_plan_id ASC
"""

SELECT_CURRENT_RATE: str = """
    SELECT rate
    FROM rate_inventory
    WHERE property_id = $1
      AND date = $2
      AND room_type_code = $3
    ORDER BY rate_plan_id ASC
    LIMIT 1
"""

# $3 window start, $4 split date (start of the recent half), $5 as-of date (exclusive)
SELECT_HISTORICAL_PERFORMANCE: str = """
    SELECT
        AVG(occupancy) AS average_occupancy,
        AVG(rate) FILTER (WHERE rooms_sold > 0) AS average_adr,
        AVG(occupancy) FILTER (WHERE date >= $4) AS recent_occupancy,
        AVG(occupancy) FILTER (WHERE date < $4) AS prior_occupancy,
        COUNT(occupancy) AS sample_days
    FROM rate_inventory
    WHERE property_id = $1
      AND room_type_id = $2
      AND date >= $3
      AND date < $5
"""

UPDATE_RATE: str = """
    UPDATE rate_inventory
    SET rate = $5,
        sync_source = $6,
        updated_at = NOW()
    WHERE property_id = $1
      AND room_type_id = $2
      AND rate_plan_id = $3
      AND date = $4
"""


# =============================================================================
# COMPETITOR RATES
# =============================================================================

UPSERT_COMPETITOR_RATE: str = """
    INSERT INTO competitor_rate (
        property_id,
        competitor_id,
        competitor_name,
        room_type_code,
        date,
        rate,
        currency,
        available,
        collected_at
    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, NOW())
    ON CONFLICT (property_id, competitor_id, room_type_code, date)
    DO UPDATE SET
        competitor_name = EXCLUDED.competitor_name,
        rate = EXCLUDED.rate,
        currency = EXCLUDED.currency,
        available = EXCLUDED.available,
        collected_at = NOW()
"""

SELECT_COMPETITOR_RATES: str = """
    SELECT
        competitor_id,
        competitor_name,
        room_type_code,
        date,
        rate,
        currency,
        available
    FROM competitor_rate
    WHERE property_id = $1
      AND date = $2
      AND ($3::text IS NULL OR room_type_code = $3)
    ORDER BY rate ASC
"""


# =============================================================================
# AI SUGGESTIONS
# =============================================================================

SUGGESTION_COLUMNS: str = """
    id,
    property_id,
    room_type_id,
    rate_plan_id,
    date,
    current_rate,
    suggested_rate,
    confidence,
    reasoning,
    factors,
    is_applied,
    applied_at,
    applied_by,
    created_at
"""

INSERT_SUGGESTION: str = f"""
    INSERT INTO ai_suggestion (
        id,
        property_id,
        room_type_id,
        rate_plan_id,
        date,
        current_rate,
        suggested_rate,
        confidence,
        reasoning,
        factors,
        is_applied,
        created_at
    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10::jsonb, FALSE, $11)
    RETURNING {SUGGESTION_COLUMNS}
"""

SELECT_SUGGESTION_BY_ID: str = f"""
    SELECT {SUGGESTION_COLUMNS}
    FROM ai_suggestion
    WHERE id = $1
"""

SELECT_SUGGESTIONS_FOR_PROPERTY: str = f"""
    SELECT {SUGGESTION_COLUMNS}
    FROM ai_suggestion
    WHERE property_id = $1
      AND date >= $2
      AND date <= $3
      AND ($4::boolean IS NULL OR is_applied = $4)
    ORDER BY date ASC
"""

# Single conditional statement: only the caller that flips the flag gets a row back
MARK_SUGGESTION_APPLIED: str = f"""
    UPDATE ai_suggestion
    SET is_applied = TRUE,
        applied_at = $3,
        applied_by = $2
    WHERE id = $1
      AND is_applied = FALSE
    RETURNING {SUGGESTION_COLUMNS}
"""
