"""DeedReg Engine — Configuration, execution context, errors, audit logging."""
