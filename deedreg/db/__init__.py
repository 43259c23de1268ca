"""DeedReg Database — SQLAlchemy tables and session management for the registry stores."""
