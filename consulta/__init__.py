from __future__ import annotations

__title__ = "Consulta"
__prog__ = "consulta"
__version__ = "0.3.1"
__description__ = """
Consulta is the live consultation recording controller of a clinical-practice management tool.
It turns an interruptible real-time speech-capture stream into a durably persisted session record,
surviving surface backgrounding, transient recognition failures and microphone permission changes.
"""
