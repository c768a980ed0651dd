# nav_text.py

NAV_TEXT = {
    "position_recognized": {
        "en": "Hello! You are near {name}. Where would you like to go?",
        "zh": "您好！您现在在{name}附近。您想去哪里？",
        "th": "สวัสดี! คุณอยู่ใกล้ {name} ต้องการไปที่ไหน"
    },
    "waiting_position": {
        "en": "Looking for your position...",
        "zh": "正在确定您的位置……",
        "th": "กำลังค้นหาตำแหน่งของคุณ..."
    },
    "finding_path": {
        "en": "Finding path to {name}...",
        "zh": "正在规划前往{name}的路线……",
        "th": "กำลังค้นหาเส้นทางไป {name}..."
    },
    "start_nav": {
        "en": "Starting navigation to {name}. Follow the arrows.",
        "zh": "开始导航前往{name}，请跟随箭头。",
        "th": "เริ่มนำทางไป {name} กรุณาเดินตามลูกศร"
    },
    "no_path": {
        "en": "Sorry, I couldn't find a path to {name}.",
        "zh": "抱歉，找不到前往{name}的路线。",
        "th": "ขออภัย ไม่พบเส้นทางไป {name}"
    },
    "restricted_destination": {
        "en": "{name} is a restricted area and cannot be navigated to.",
        "zh": "{name}是禁区，无法导航前往。",
        "th": "{name} เป็นพื้นที่หวงห้าม ไม่สามารถนำทางไปได้"
    },
    "not_found": {
        "en": "I couldn't find that location. Available locations are: {names}",
        "zh": "找不到该地点。可前往的地点有：{names}",
        "th": "ไม่พบสถานที่นั้น สถานที่ที่มีคือ: {names}"
    },
    "distance_to_next": {
        "en": "{dist} to next point",
        "zh": "距下一个点{dist}",
        "th": "อีก {dist} ถึงจุดถัดไป"
    },
    "approaching": {
        "en": "Approaching {name}",
        "zh": "即将到达{name}",
        "th": "กำลังเข้าใกล้ {name}"
    },
    "arrived": {
        "en": "You have reached your destination",
        "zh": "您已到达目的地",
        "th": "คุณถึงจุดหมายแล้ว"
    },
    "restricted_alert": {
        "en": "Warning! You are entering the restricted area {name}.",
        "zh": "警告！您正在进入禁区{name}。",
        "th": "คำเตือน! คุณกำลังเข้าสู่พื้นที่หวงห้าม {name}"
    },
    "emergency": {
        "en": "EMERGENCY! EVACUATE IMMEDIATELY!",
        "zh": "紧急情况！请立即撤离！",
        "th": "เหตุฉุกเฉิน! อพยพทันที!"
    },
    "no_exits": {
        "en": "No emergency exits have been defined!",
        "zh": "未设置紧急出口！",
        "th": "ยังไม่มีการกำหนดทางออกฉุกเฉิน!"
    },
    "map_updated": {
        "en": "The map was updated and the current route is no longer valid.",
        "zh": "地图已更新，当前路线已失效。",
        "th": "แผนที่ได้รับการอัปเดต เส้นทางปัจจุบันใช้ไม่ได้แล้ว"
    },
    "forward": {
        "en": "Forward {dist}",
        "zh": "直行{dist}",
        "th": "เดินตรงไป {dist}"
    },
    "turn": {
        "en": "{qual} {direction} to {hour} o'clock",
        "zh": "{hour}点方向{qual}{direction}转弯",
        "th": "{qual} เลี้ยว{direction} ไปทาง {hour} นาฬิกา"
    },
    "u_turn": {
        "en": "Make a U-turn (6 o'clock)",
        "zh": "掉头（6点方向）",
        "th": "กลับรถ (6 นาฬิกา)"
    },
    "arrive": {
        "en": "{label} is ahead",
        "zh": "{label}就在前方",
        "th": "{label} อยู่ข้างหน้า"
    }
}

UNIT_TEXT = {
    "meter": {
        "en": "{v} meters",
        "zh": "{v}米",
        "th": "{v} เมตร"
    },
    "meter_1": {
        "en": "1 meter",
        "zh": "1米",
        "th": "1 เมตร"
    },
    "feet": {
        "en": "{v} feet",
        "zh": "{v}英尺",
        "th": "{v} ฟุต"
    },
    "feet_1": {
        "en": "1 foot",
        "zh": "1英尺",
        "th": "1 ฟุต"
    }
}

SUPPORTED_LANGUAGES = ("en", "zh", "th")


def nav_text(key: str, lang: str, **kwargs) -> str:
    """Get a status/spoken string by key and language, with formatted params."""
    tpl = NAV_TEXT.get(key, {})
    text = tpl.get(lang) or tpl.get("en") or ""
    return text.format(**kwargs)


def unit_text(value: float, unit: str, lang: str) -> str:
    """Distance string such as "3 meters" or "1 foot", rounded to whole units."""
    if unit not in ("meter", "feet"):
        raise ValueError("Unit must be 'meter' or 'feet'")
    count = int(round(value))
    tpl = UNIT_TEXT[f"{unit}_1" if count == 1 else unit]
    return (tpl.get(lang) or tpl["en"]).format(v=count)
