"""Lab attendance and payroll core.

Feature modules (biometric, attendance, payroll, ...) follow the same
model / repository protocol / MySQL repository / service layering. Wiring
lives in ``container.build_container``.
"""
