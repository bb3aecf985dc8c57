from fishbone.database.store import DiagramStore, JsonRecordStore, RecordStore

__all__ = ["RecordStore", "JsonRecordStore", "DiagramStore"]
