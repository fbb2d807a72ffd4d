'''
Rate Intelligence Test Suite

Test Modules:
-------------
- test_market_statistics.py: Pure market statistics
  - Median, population std and coefficient of variation
  - Percentile position and premium / competitive / value categories
  - Premium / mid / value segmentation
  - Proximity rate clustering
  - Competitive gaps and market commentary lines

- test_rate_collector.py: Competitor rate collection
  - Seeded synthetic generator policy
  - Live provider call via httpx.MockTransport
  - Synthetic fallback on timeout, HTTP error and malformed payload

- test_recommendation_engine.py: Recommendation scoring
  - Suggested rate clamp to 75%-125% of the current rate
  - Confidence penalties and the high-variance cap
  - Demand, trend, forecast and reasoning signals

- test_insights_pipeline.py: Orchestration over in-memory stores
  - Partial-failure batches
  - Apply-once suggestion lifecycle, including concurrent applies
  - Competitor refresh and dashboard

- test_database.py: PostgreSQL stores against a mock asyncpg pool

- test_api.py: /ai-insights endpoint status codes

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v

Test Dependencies:
------------------
- pytest
- pytest-asyncio
'''

__all__ = []
