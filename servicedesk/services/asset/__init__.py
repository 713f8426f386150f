from servicedesk.services.asset.asset_record_service import AssetRecordService

__all__ = ["AssetRecordService"]
