"""OrderDesk: lead and order management backend for a medical-order desk."""

__version__ = "1.0.0"
