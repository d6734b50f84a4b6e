"""
Localization for MoneyNote

Display strings for Burmese (default), English and Japanese.

DESIGN DECISION: Stored data never contains display text.
Transactions carry Category codes and the aggregator works on codes
and numbers only. This module is the single place where a code, a
period key or a budget state becomes something a user reads.

Lookup falls back to English, then to the key itself, so a missing
translation shows up as readable text instead of an exception.
"""

from decimal import Decimal
from enum import Enum
from typing import Union

from moneynote.models.transaction import BudgetState, BudgetStatus, Category


class Language(str, Enum):
    MY = "my"
    EN = "en"
    JA = "ja"


# =============================================================================
# UI STRINGS
# =============================================================================

TRANSLATIONS: dict[Language, dict[str, str]] = {
    Language.MY: {
        "app_name": "MoneyNote",
        "app_desc": "Smart Finance Tracker",
        "welcome": "မင်္ဂလာပါ",

        # Dashboard
        "income": "ဝင်ငွေ",
        "expense": "ထွက်ငွေ",
        "balance": "လလက်ကျန်",
        "budget_title": "လစဉ် သုံးစွဲငွေ လျာထားချက် (Budget)",
        "set_budget": "လစဉ်သုံးငွေ လျာထားချက် သတ်မှတ်မည်",
        "set_budget_desc": "ချွေတာလိုသော ပမာဏကို သတ်မှတ်ပြီး စီမံပါ",
        "spent": "သုံးစွဲမှု",
        "limit": "လျာထားချက်",
        "not_set": "မသတ်မှတ်ထားပါ",
        "over_spent": "ပိုသုံးမိနေပါပြီ",
        "warning": "သတိပြုရန်",
        "warning_desc": "ကျော်နေပါပြီ။ ချွေတာပါ။",
        "warning_zone": "သတိပြုပါ: လျာထားချက်၏ {percent}% ကျော်နေပါပြီ။ ချွေတာပါ။",
        "normal_state": "ပုံမှန်အခြေအနေတွင် ရှိနေပါသည်။",
        "danger_state": "အန္တရာယ်အဆင့် ရောက်ရှိနေပါသည်",
        "over_budget_msg": "လျာထားချက်ထက် ပိုသုံးမိနေပါပြီ။",
        "over_budget_amount": "လျာထားချက်ထက် {amount} ပိုသုံးမိနေပါပြီ!",

        # Transaction form
        "add_transaction": "စာရင်းသစ် ထည့်ရန်",
        "edit_transaction": "စာရင်း ပြင်ဆင်ရန်",
        "amount": "ပမာဏ",
        "label": "အကြောင်းအရာ",
        "category": "အမျိုးအစား",
        "label_placeholder_income": "ဥပမာ - လစာ",
        "label_placeholder_expense": "ဥပမာ - မနက်စာ",
        "save": "သိမ်းဆည်းမည်",
        "add": "စာရင်းသွင်းမည်",

        # Table and search
        "search_placeholder": "အမျိုးအစား သို့မဟုတ် ပမာဏဖြင့် ရှာရန်...",
        "date": "ရက်စွဲ",
        "no_data": "စာရင်းမရှိသေးပါ",
        "items": "ခု",

        # Actions
        "edit": "ပြင်ဆင်မည်",
        "delete": "ဖျက်မည်",
        "cancel": "မလုပ်တော့ပါ",
        "confirm_delete": "ဤစာရင်းကို ဖျက်ရန် သေချာပါသလား?",
        "read_only": "လဟောင်းစာရင်းများကို ပြင်ဆင်ခွင့် ပိတ်ထားပါသည်။",

        # Chart and history
        "chart_title": "နေ့စဉ် ငွေဝင်/ထွက် နှိုင်းယှဉ်ချက်",
        "history_title": "လဟောင်း စာရင်းများ",
        "no_history": "လဟောင်းစာရင်း မရှိသေးပါ",
        "back_to_current": "လက်ရှိလသို့ ပြန်သွားမည်",

        # Settings
        "settings": "Settings",
        "change_language": "Change Language",
        "export": "Export CSV",
        "export_confirm": "လက်ရှိစာရင်းများကို CSV ဖိုင်အနေဖြင့် ဒေါင်းလုဒ်ရယူမည်လား?",
        "download": "ရယူမည်",

        # Budget settings
        "budget_settings_title": "Budget Settings",
        "budget_settings_desc": "လစဉ်သုံးငွေ လျာထားချက်နှင့် သတိပေးချက်များကို ချိန်ညှိပါ။",
        "budget_amount": "လျာထားချက် ပမာဏ",
        "budget_enabled": "လျာထားချက် ဖွင့်ထားမည်",
        "budget_paused": "လျာထားချက်ကို ခေတ္တပိတ်ထားသည်",
        "warning_alert": "Warning Alert",
        "critical_alert": "Critical Alert",
        "warning_msg": "သုံးငွေ {percent}% ကျော်လွန်ပါက အဝါရောင်ဖြင့် သတိပေးပါမည်။",
        "critical_msg": "သုံးငွေ {percent}% ကျော်လွန်ပါက အနီရောင်ဖြင့် အန္တရာယ်ပြပါမည်။",
        "remove_budget": "လျာထားချက် ဖျက်မည်",

        # Voice entry
        "voice_title": "အသံဖြင့် စာရင်းသွင်းရန်",
        "voice_hint": "ဥပမာ - မနက်စာစားတာက ၄၅၀၀ ဈေးဝယ်တာက ၅၀၀၀",
        "voice_parse": "စာရင်းများ ထုတ်ယူမည်",
        "voice_confirm": "အတည်ပြု သိမ်းဆည်းမည်",
        "voice_failed": "အသံကို နားမလည်ပါ။ ထပ်မံကြိုးစားပါ။",
        "voice_empty": "စာရင်း မတွေ့ပါ",

        # AI advice
        "advice_title": "AI အကြံပြုချက်",
        "advice_no_data": "စာရင်းအချက်အလက်များ မရှိသေးပါ။",
        "advice_error": "Gemini AI နှင့် ချိတ်ဆက်ရာတွင် အမှားအယွင်းရှိနေပါသည်။",
        "advice_unavailable": "အချက်အလက်များကို ဆန်းစစ်၍မရနိုင်ပါ။",

        # Status messages
        "saved": "သိမ်းဆည်းပြီးပါပြီ",
        "deleted": "ဖျက်ပြီးပါပြီ",
        "save_failed": "သိမ်းဆည်း၍ မရပါ",
    },
    Language.EN: {
        "app_name": "MoneyNote",
        "app_desc": "Smart Finance Tracker",
        "welcome": "Welcome",

        "income": "Income",
        "expense": "Expense",
        "balance": "Balance",
        "budget_title": "Monthly Budget Goal",
        "set_budget": "Set Monthly Budget",
        "set_budget_desc": "Set a limit to manage savings",
        "spent": "Spent",
        "limit": "Limit",
        "not_set": "Not set",
        "over_spent": "Overspent",
        "warning": "Warning",
        "warning_desc": "Limit exceeded. Please save.",
        "warning_zone": "Warning: over {percent}% of the limit. Please save.",
        "normal_state": "Spending is within normal limits.",
        "danger_state": "Critical Level Reached",
        "over_budget_msg": "Overspent by",
        "over_budget_amount": "Overspent by {amount}",

        "add_transaction": "Add Transaction",
        "edit_transaction": "Edit Transaction",
        "amount": "Amount",
        "label": "Label",
        "category": "Category",
        "label_placeholder_income": "e.g. Salary",
        "label_placeholder_expense": "e.g. Breakfast",
        "save": "Save Changes",
        "add": "Add Transaction",

        "search_placeholder": "Search by category or amount...",
        "date": "Date",
        "no_data": "No transactions yet",
        "items": "items",

        "edit": "Edit",
        "delete": "Delete",
        "cancel": "Cancel",
        "confirm_delete": "Are you sure you want to delete this?",
        "read_only": "Past months are read-only.",

        "chart_title": "Daily Income/Expense Comparison",
        "history_title": "History",
        "no_history": "No history available",
        "back_to_current": "Back to Current Month",

        "settings": "Settings",
        "change_language": "Change Language",
        "export": "Export CSV",
        "export_confirm": "Do you want to download current data as CSV?",
        "download": "Download",

        "budget_settings_title": "Budget Settings",
        "budget_settings_desc": "Adjust budget limit and alert thresholds.",
        "budget_amount": "Budget Amount",
        "budget_enabled": "Budget enabled",
        "budget_paused": "Budget is paused",
        "warning_alert": "Warning Alert",
        "critical_alert": "Critical Alert",
        "warning_msg": "Warn when spending exceeds {percent}%.",
        "critical_msg": "Show critical alert when spending exceeds {percent}%.",
        "remove_budget": "Remove Budget",

        "voice_title": "Voice Entry",
        "voice_hint": "e.g. Breakfast 4500, shopping 5000",
        "voice_parse": "Extract Transactions",
        "voice_confirm": "Confirm and Save",
        "voice_failed": "Could not understand the recording. Please try again.",
        "voice_empty": "No transactions found",

        "advice_title": "AI Advice",
        "advice_no_data": "No transaction data yet.",
        "advice_error": "There was an error connecting to Gemini AI.",
        "advice_unavailable": "The data could not be analyzed.",

        "saved": "Saved",
        "deleted": "Deleted",
        "save_failed": "Could not save",
    },
    Language.JA: {
        "app_name": "MoneyNote",
        "app_desc": "スマート家計簿",
        "welcome": "ようこそ",

        "income": "収入",
        "expense": "支出",
        "balance": "残高",
        "budget_title": "月間予算目標",
        "set_budget": "月間予算を設定",
        "set_budget_desc": "貯蓄を管理するための上限を設定",
        "spent": "使用済み",
        "limit": "上限",
        "not_set": "未設定",
        "over_spent": "超過",
        "warning": "注意",
        "warning_desc": "上限を超えています。節約してください。",
        "warning_zone": "注意: 予算の{percent}%を超えています。節約してください。",
        "normal_state": "支出は正常範囲内です。",
        "danger_state": "危険レベルに達しました",
        "over_budget_msg": "予算超過額:",
        "over_budget_amount": "予算超過額: {amount}",

        "add_transaction": "取引を追加",
        "edit_transaction": "取引を編集",
        "amount": "金額",
        "label": "内容",
        "category": "カテゴリ",
        "label_placeholder_income": "例：給料",
        "label_placeholder_expense": "例：朝食",
        "save": "保存",
        "add": "追加",

        "search_placeholder": "カテゴリまたは金額で検索...",
        "date": "日付",
        "no_data": "取引はまだありません",
        "items": "件",

        "edit": "編集",
        "delete": "削除",
        "cancel": "キャンセル",
        "confirm_delete": "本当に削除しますか？",
        "read_only": "過去の月は閲覧専用です。",

        "chart_title": "日次収支比較",
        "history_title": "履歴",
        "no_history": "履歴はありません",
        "back_to_current": "今月に戻る",

        "settings": "設定",
        "change_language": "言語変更",
        "export": "CSV出力",
        "export_confirm": "現在のデータをCSVとしてダウンロードしますか？",
        "download": "ダウンロード",

        "budget_settings_title": "予算設定",
        "budget_settings_desc": "予算上限とアラートしきい値を調整します。",
        "budget_amount": "予算額",
        "budget_enabled": "予算を有効にする",
        "budget_paused": "予算は一時停止中です",
        "warning_alert": "警告アラート",
        "critical_alert": "危険アラート",
        "warning_msg": "支出が {percent}% を超えたら警告します。",
        "critical_msg": "支出が {percent}% を超えたら危険アラートを表示します。",
        "remove_budget": "予算を削除",

        "voice_title": "音声入力",
        "voice_hint": "例：朝食 4500、買い物 5000",
        "voice_parse": "取引を抽出",
        "voice_confirm": "確認して保存",
        "voice_failed": "録音を認識できませんでした。もう一度お試しください。",
        "voice_empty": "取引が見つかりません",

        "advice_title": "AIアドバイス",
        "advice_no_data": "取引データはまだありません。",
        "advice_error": "Gemini AIへの接続中にエラーが発生しました。",
        "advice_unavailable": "データを分析できませんでした。",

        "saved": "保存しました",
        "deleted": "削除しました",
        "save_failed": "保存できませんでした",
    },
}


# =============================================================================
# CATEGORY NAMES
# =============================================================================

CATEGORY_LABELS: dict[Language, dict[Category, str]] = {
    Language.MY: {
        Category.FOOD: "အစားအသောက်",
        Category.TRANSPORT: "လမ်းစရိတ်",
        Category.SHOPPING: "ဈေးဝယ်",
        Category.HEALTH: "ကျန်းမာရေး",
        Category.BILLS: "မီတာ/အင်တာနက်",
        Category.PHONE: "ဖုန်းဘေလ်",
        Category.GIFT: "လက်ဆောင်/အလှူ",
        Category.WORK: "လုပ်ငန်းသုံး",
        Category.EDUCATION: "ပညာရေး",
        Category.GENERAL: "အထွေထွေ",
        Category.SALARY: "လစာ",
        Category.BONUS: "ဘောနပ်စ်",
        Category.SALES: "လုပ်ငန်း/အရောင်း",
        Category.ALLOWANCE: "မုန့်ဖိုး",
        Category.REFUND: "ပြန်ရငွေ",
    },
    Language.EN: {
        Category.FOOD: "Food",
        Category.TRANSPORT: "Transport",
        Category.SHOPPING: "Shopping",
        Category.HEALTH: "Health",
        Category.BILLS: "Bills/Internet",
        Category.PHONE: "Phone Bill",
        Category.GIFT: "Gift/Donation",
        Category.WORK: "Work",
        Category.EDUCATION: "Education",
        Category.GENERAL: "General",
        Category.SALARY: "Salary",
        Category.BONUS: "Bonus",
        Category.SALES: "Business/Sales",
        Category.ALLOWANCE: "Allowance",
        Category.REFUND: "Refund",
    },
    Language.JA: {
        Category.FOOD: "食費",
        Category.TRANSPORT: "交通費",
        Category.SHOPPING: "買い物",
        Category.HEALTH: "医療費",
        Category.BILLS: "光熱費/ネット",
        Category.PHONE: "通信費",
        Category.GIFT: "交際費/寄付",
        Category.WORK: "事業経費",
        Category.EDUCATION: "教育費",
        Category.GENERAL: "その他",
        Category.SALARY: "給料",
        Category.BONUS: "ボーナス",
        Category.SALES: "事業売上",
        Category.ALLOWANCE: "お小遣い",
        Category.REFUND: "返金",
    },
}

BURMESE_MONTHS = (
    "ဇန်နဝါရီ", "ဖေဖော်ဝါရီ", "မတ်", "ဧပြီ", "မေ", "ဇွန်",
    "ဇူလိုင်", "သြဂုတ်", "စက်တင်ဘာ", "အောက်တိုဘာ", "နိုဝင်ဘာ", "ဒီဇင်ဘာ",
)

ENGLISH_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


class Localizer:
    """
    Turns codes, period keys and budget states into display text.

    Usage:
        t = Localizer("my")
        t.text("income")                 # "ဝင်ငွေ"
        t.month_title("2024-06")         # "2024 ဇွန်လ"
        t.category_label(Category.FOOD)  # "အစားအသောက်"
    """

    def __init__(
        self,
        language: Union[Language, str] = Language.MY,
        currency_label: str = "ကျပ်",
    ):
        self.language = Language(language)
        self.currency_label = currency_label

    def text(self, key: str, **params) -> str:
        """UI string for a key, with optional {placeholders} filled in."""
        value = TRANSLATIONS[self.language].get(key)
        if value is None:
            value = TRANSLATIONS[Language.EN].get(key, key)
        return value.format(**params) if params else value

    def category_label(self, category) -> str:
        if category is None:
            category = Category.GENERAL
        return CATEGORY_LABELS[self.language][Category(category)]

    def month_title(self, period_key: str) -> str:
        year, month = (int(part) for part in period_key.split("-"))
        if self.language == Language.MY:
            return f"{year} {BURMESE_MONTHS[month - 1]}လ"
        if self.language == Language.JA:
            return f"{year}年{month}月"
        return f"{ENGLISH_MONTHS[month - 1]} {year}"

    def format_amount(self, amount: Union[Decimal, int, float]) -> str:
        """Thousands separators; whole amounts without decimals."""
        value = Decimal(str(amount))
        if value == value.to_integral_value():
            return f"{int(value):,}"
        return f"{value:,.2f}"

    def format_money(self, amount: Union[Decimal, int, float]) -> str:
        return f"{self.format_amount(amount)} {self.currency_label}"

    def budget_message(self, status: BudgetStatus) -> str:
        """
        One-line message for the budget card.

        Overspending takes priority over the zone message because it
        carries the amount the user needs to cut back.
        """
        if not status.enabled:
            return self.text("budget_paused")
        if status.state == BudgetState.UNCONFIGURED:
            return self.text("set_budget")
        if status.is_over_budget:
            return self.text(
                "over_budget_amount",
                amount=self.format_money(status.overspend),
            )
        if status.state == BudgetState.DANGER:
            return self.text("danger_state")
        if status.state == BudgetState.WARNING:
            return self.text("warning_zone", percent=status.warning_percent)
        return self.text("normal_state")
