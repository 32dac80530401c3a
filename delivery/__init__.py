from delivery.output import deliver_stats, deliver_summary

__all__ = ["deliver_stats", "deliver_summary"]
