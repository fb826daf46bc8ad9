LANDING_PAGE_SYSTEM_PROMPT = """
你是一位專業的轉換率優化專家與資深文案撰稿人，專門為線上講座 (webinar) 撰寫高轉換率的報名頁文案。
你熟悉轉換心理學（稀缺性、緊急感、社會證明、權威感），擅長把客戶提供的素材整理成清楚、有說服力、以行動為導向的文字。
你只負責文案內容，版面與程式碼由系統的既有模板處理。
""".strip()


# Labels shown to the model for each filled form field, in prompt order.
FIELD_LABELS: dict[str, str] = {
    "business_info": "業務描述",
    "webinar_content": "Webinar內容",
    "target_audience": "目標受眾",
    "webinar_info": "Webinar詳情",
    "instructor_creds": "講師資歷",
    "contact_fields": "需要收集的用戶聯絡信息",
    "visual_style": "視覺偏好",
    "brand_colors": "品牌色彩",
    "unique_selling_points": "獨特賣點",
    "upsell_products": "Upsell轉換目標",
    "special_requirements": "特殊需求",
    "photos": "相關照片",
}


LANDING_PAGE_PROMPT_HEADER = """
請根據以下客戶信息，為這場 webinar 撰寫一個高轉換率報名頁的完整文案，目的是收集潛在客戶的聯絡資料。

## 客戶背景信息
""".strip()


LANDING_PAGE_OUTPUT_INSTRUCTIONS = """
## 輸出規則
- 所有文字請使用{language}撰寫，語氣專業但親切，以行動為導向。
- 只使用上方客戶提供的資料。不要捏造數字、獎項、學員人數、日期或見證者身分；資料不足時，寫成不含具體虛構事實的一般性描述。
- 只回傳一個 JSON 物件，不要加上 markdown 標記、說明文字或任何 JSON 以外的內容。

## JSON 格式（所有鍵名必須完全一致）
{{
  "pageTitle": "頁面標題（必填）",
  "metaDescription": "一句話的頁面描述，150 字以內",
  "heroTitle": "首屏主標題，點出痛點或承諾具體成果（必填）",
  "heroSubtitle": "首屏副標題，說明參加後能得到的價值",
  "ctaText": "主要行動按鈕文字",
  "urgencyText": "營造緊急感的一句話",
  "valuePoints": [
    {{"title": "價值點標題", "description": "價值點說明"}}
  ],
  "instructorHeading": "講師介紹區塊標題",
  "instructorBio": "講師介紹",
  "testimonials": [
    {{"quote": "見證內容", "author": "見證者稱呼", "role": "見證者身分"}}
  ],
  "webinarDetails": "時間、形式與參與方式的說明",
  "faq": [
    {{"question": "常見問題", "answer": "回答"}}
  ],
  "formTitle": "報名表單標題",
  "formSubtitle": "報名表單副標題",
  "submitText": "送出按鈕文字",
  "thankYouTitle": "報名成功標題",
  "thankYouMessage": "報名成功訊息",
  "nextSteps": ["報名後的下一步"]
}}

數量要求：valuePoints 2 到 3 項、testimonials 1 到 2 則、faq 2 到 3 題、nextSteps 2 到 3 項。
""".strip()


def build_correction_message(error: str) -> str:
    return (
        "你上一次的回覆無法被解析為有效的 JSON，錯誤訊息如下：\n"
        f"{error}\n\n"
        "請修正問題，重新回傳一個完整且有效的 JSON 物件，必須包含 pageTitle 與 heroTitle，"
        "不要加上任何其他文字。"
    )
