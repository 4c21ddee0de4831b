"""Fixed wording of the small-claims filing, keyed where it varies by incident kind."""

from cashbus.constants import INCIDENT_DELAY, INCIDENT_NO_ARRIVAL, INCIDENT_NO_STOP

COURT_NAME = "בבית המשפט לתביעות קטנות"
DOCUMENT_TITLE = "כתב תביעה"
DOCUMENT_SUBTITLE = 'לפי חוק תובענות קטנות, התשל"ו-1976'
DEFENDANT_SUFFIX = ' בע"מ'
DEFENDANT_DESCRIPTION = "חברת תחבורה ציבורית"

INTRODUCTION = (
    "תביעה זו מוגשת נגד הנתבע בגין הפרת חובה חקוקה והפרת חוזה הובלה,",
    'בהתאם לתקנות התעבורה ולפי חוק הגנת הצרכן, התשמ"א-1981.',
)

AMOUNT_TO_BE_DETERMINED = "סכום התביעה ייקבע במועד הגשת התביעה"

_SERVICE_FAILURE_BASIS = (
    "תקנה 399(א) לתקנות התעבורה - חובת בעל הרישיון להפעיל שירות תקין וסדיר.",
    "תקנה 400(א) לתקנות התעבורה - חובת עמידה בלוחות הזמנים.",
    'על פי פסיקת בתי המשפט (ת"ק 32995-02-14), על חברת התחבורה לצפות שינויים '
    "ולהיערך להם מראש. אין באיחור נהג או חוסר בכוח אדם כדי להוות הגנה חוקית.",
)

LEGAL_BASIS_BY_KIND = {
    INCIDENT_NO_ARRIVAL: _SERVICE_FAILURE_BASIS,
    INCIDENT_DELAY: _SERVICE_FAILURE_BASIS,
    INCIDENT_NO_STOP: (
        "תקנה 428(ג) לתקנות התעבורה - חובת עצירה בכל תחנה המפורטת ברישיון הקו.",
        "תקנה 385א לתקנות התעבורה - חובת המפעיל לספק שירות אמין.",
        "תקנה 430 לתקנות התעבורה - חובת העצירה בתחנות המיועדות.",
    ),
}

COMMON_LEGAL_BASIS = (
    'חוק הגנת הצרכן, התשמ"א-1981 - הגנה מפני שירות לקוי חוזר.',
    "הפרת חוזה הובלה - הנתבע התחייב להוביל את התובע ולא קיים את התחייבותו.",
)

FACT_BY_KIND = {
    INCIDENT_NO_ARRIVAL: 'ביום {date}, קו {bus_line} של הנתבע לא הגיע לתחנת "{station}".',
    INCIDENT_DELAY: 'ביום {date}, קו {bus_line} של הנתבע איחר {delay} דקות לתחנת "{station}".',
    INCIDENT_NO_STOP: (
        'ביום {date}, אוטובוס של הנתבע (קו {bus_line}) חלף על פני תחנת "{station}" '
        "מבלי לעצור, למרות שהתובע המתין בתחנה ואיתת לאוטובוס."
    ),
}

FACT_INITIAL_LETTER = "ביום {date}, נשלח לנתבע מכתב התראה רשמי."
FACT_LETTERS_SENT = "לאחר מכתב ההתראה נשלחו לנתבע {count} מכתבי תזכורת."
FACT_COMPANY_RESPONDED = "הנתבע השיב אך סירב לשלם או לא הציע פתרון סביר."
FACT_NO_RESPONSE = "הנתבע לא השיב למכתבים ולא שילם את הפיצוי הנדרש."

RELIEF = (
    "לחייב את הנתבע לשלם לתובע את סכום התביעה כפי שייקבע במועד הגשתה.",
    "לחייב את הנתבע בהוצאות המשפט ובשכר טרחת עורך דין.",
    "לחייב את הנתבע בהפרשי הצמדה וריבית כחוק מיום הגשת התביעה ועד התשלום המלא בפועל.",
)

EVIDENCE_GPS = "תיעוד GPS ממערכת CashBus בדיוק של {accuracy} מטרים"
EVIDENCE_PRESENCE_CONFIRMED = "נתוני נוכחות אוטובוסים ממשרד התחבורה מאמתים את האירוע"
EVIDENCE_PRESENCE_CONTRADICTED = "נתוני נוכחות אוטובוסים ממשרד התחבורה אינם מאמתים את האירוע"
EVIDENCE_RECEIPTS = "{count} קבלות הוצאות (צילומים דיגיטליים)"
EVIDENCE_LETTERS = "{count} מכתבים שנשלחו לנתבע"

FOOTER = "מסמך זה הופק באופן אוטומטי על ידי מערכת CashBus | מוכן להגשה בנט-המשפט"
