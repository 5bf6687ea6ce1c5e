"""
Streamlit dashboard for protocol review and RTSM configuration.

Run with ``streamlit run backend/dashboard/protocol_dashboard.py``.
"""

__version__ = "1.0.0"
