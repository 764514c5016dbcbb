REGISTER_ITEM_CHANNEL = "stock:register_item:v1"
RECEIVE_PURCHASE_CHANNEL = "stock:receive_purchase:v1"
USE_PARTS_CHANNEL = "stock:use_parts:v1"
RELEASE_STOCK_CHANNEL = "stock:release:v1"
ADJUST_BATCH_CHANNEL = "stock:adjust_batch:v1"
RETURN_PARTS_CHANNEL = "stock:return_parts:v1"

STOCK_CONSUMED_CHANNEL = "stock:consumed:v1"
OUT_OF_STOCK_CHANNEL = "stock:out_of_stock:v1"
LOW_STOCK_CHANNEL = "stock:low_stock:v1"
BATCH_ADJUSTED_CHANNEL = "stock:batch_adjusted:v1"
STOCK_RETURNED_CHANNEL = "stock:returned:v1"
