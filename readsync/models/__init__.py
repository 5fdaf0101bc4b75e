from readsync.models.reading_record import ReadingRecord

__all__ = ["ReadingRecord"]
