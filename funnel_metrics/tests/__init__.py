'''
Funnel Metrics Test Suite

Test Modules:
-------------
- test_extraction.py: field coercion, zero-defaulting, derived fields, time buckets
- test_rates.py: ratio definitions and the zero-denominator policy
- test_scoring.py: component scores, clamping, tier thresholds
- test_aggregation.py: breakdown buckets, ratio-of-sums, histograms, top performers
- test_insights.py: rule order, margin boundaries, neutral statement
- test_pipeline.py: end-to-end channel scenarios and idempotence
- test_dispatch.py: channel selection, failure isolation, record source
- test_config_benchmarks.py: settings and benchmark table validation
- test_api.py: FastAPI handlers called directly

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v
'''

__all__ = []
