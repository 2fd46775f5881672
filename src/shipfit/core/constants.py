"""
shipfit Constants

Dogma attribute IDs, effect IDs, category IDs and skill IDs shared across
the fitting modules. Values come from EVE's dogma system as exposed by ESI
/dogma/attributes/ and /universe/types/.
"""

# =============================================================================
# ESI Configuration
# =============================================================================

ESI_BASE_URL = "https://esi.evetech.net/latest"
ESI_DATASOURCE = "tranquility"

TYPE_ENDPOINT = "/universe/types/{type_id}/"
GROUP_ENDPOINT = "/universe/groups/{group_id}/"
NAMES_TO_IDS_ENDPOINT = "/universe/ids/"
CHARACTER_SKILLS_ENDPOINT = "/characters/{character_id}/skills/"

# =============================================================================
# Dogma Attribute IDs
# =============================================================================

# Ship resources
ATTR_POWERGRID = 11  # powerOutput (MW)
ATTR_CPU = 48  # cpuOutput (tf)

# Module resource usage
ATTR_MODULE_PG_USAGE = 30  # power
ATTR_MODULE_CPU_USAGE = 50  # cpu
ATTR_MODULE_ACTIVATION_COST = 15  # capacitorNeed (GJ per activation)
ATTR_MODULE_CYCLE_TIME = 51  # speed (ms)

# Capacitor
ATTR_CAP_CAPACITY = 482  # capacitorCapacity (GJ)
ATTR_CAP_RECHARGE_TIME = 55  # rechargeRate (ms)

# Hit points
ATTR_STRUCTURE_HP = 9
ATTR_ARMOR_HP = 265
ATTR_SHIELD_CAPACITY = 263

# Shield resonances (1.0 = no resist)
ATTR_SHIELD_EM_RESONANCE = 271
ATTR_SHIELD_EXPLOSIVE_RESONANCE = 272
ATTR_SHIELD_KINETIC_RESONANCE = 273
ATTR_SHIELD_THERMAL_RESONANCE = 274

# Armor resonances
ATTR_ARMOR_EM_RESONANCE = 267
ATTR_ARMOR_EXPLOSIVE_RESONANCE = 268
ATTR_ARMOR_KINETIC_RESONANCE = 269
ATTR_ARMOR_THERMAL_RESONANCE = 270

# Hull resonances
ATTR_HULL_EM_RESONANCE = 113
ATTR_HULL_KINETIC_RESONANCE = 109
ATTR_HULL_THERMAL_RESONANCE = 110
ATTR_HULL_EXPLOSIVE_RESONANCE = 111

# Navigation
ATTR_MAX_VELOCITY = 37
ATTR_INERTIA_MODIFIER = 70  # agility
ATTR_WARP_SPEED_MULT = 600
ATTR_SIGNATURE_RADIUS = 552

# Targeting
ATTR_MAX_TARGETS = 192
ATTR_MAX_TARGET_RANGE = 76
ATTR_SCAN_RESOLUTION = 564
ATTR_SENSOR_RADAR_STRENGTH = 208
ATTR_SENSOR_LADAR_STRENGTH = 209
ATTR_SENSOR_MAGNETOMETRIC_STRENGTH = 210
ATTR_SENSOR_GRAVIMETRIC_STRENGTH = 211

# Slot layout
ATTR_LOW_SLOTS = 12
ATTR_MED_SLOTS = 13
ATTR_HI_SLOTS = 14
ATTR_RIG_SLOTS = 1137

# Hardpoints
ATTR_LAUNCHER_SLOTS_LEFT = 101
ATTR_TURRET_SLOTS_LEFT = 102

# Drones
ATTR_DRONE_CAPACITY = 283  # ship drone bay (m3)
ATTR_DRONE_BANDWIDTH = 1271  # ship bandwidth (Mbit/s)
ATTR_DRONE_BANDWIDTH_NEED = 1272  # per-drone bandwidth
ATTR_VOLUME = 161  # per-drone bay usage (m3)

# Calibration
ATTR_CALIBRATION_TOTAL = 1132  # upgradeCapacity
ATTR_CALIBRATION_COST = 1153  # upgradeCost

# Turrets
ATTR_DAMAGE_MULTIPLIER = 64
ATTR_TRACKING_SPEED = 160
ATTR_OPTIMAL_RANGE = 54
ATTR_FALLOFF = 158

# Missiles
ATTR_MISSILE_FLIGHT_TIME = 51  # shares the cycle-time attribute on launchers
ATTR_MISSILE_VELOCITY = 37
ATTR_EXPLOSION_RADIUS = 103
ATTR_EXPLOSION_VELOCITY = 104
ATTR_MISSILE_DAMAGE_MULT = 212

# Damage
ATTR_EM_DAMAGE = 114
ATTR_EXPLOSIVE_DAMAGE = 116
ATTR_KINETIC_DAMAGE = 117
ATTR_THERMAL_DAMAGE = 118

# Skill requirements: (requiredSkillN, requiredSkillNLevel)
SKILL_REQ_ATTRS: tuple[tuple[int, int], ...] = (
    (182, 277),
    (183, 278),
    (184, 279),
    (1285, 1286),
    (1289, 1287),
    (1290, 1288),
)

# =============================================================================
# Dogma Effect IDs
# =============================================================================

EFFECT_HIGH_SLOT = 12  # hiPower
EFFECT_MED_SLOT = 13  # medPower
EFFECT_LOW_SLOT = 11  # loPower
EFFECT_RIG_SLOT = 2663  # rigSlot
EFFECT_SUBSYSTEM = 3772  # subSystem

EFFECT_LAUNCHER_FITTED = 40
EFFECT_TURRET_FITTED = 42

# =============================================================================
# Category IDs
# =============================================================================

CATEGORY_SHIP = 6
CATEGORY_MODULE = 7
CATEGORY_CHARGE = 8
CATEGORY_SKILL = 16
CATEGORY_DRONE = 18
CATEGORY_IMPLANT = 20
CATEGORY_SUBSYSTEM = 32

# =============================================================================
# Fitting Limits
# =============================================================================

MAX_RACK_SLOTS = 8
DEFAULT_HIGH_SLOTS = 8
DEFAULT_MID_SLOTS = 5
DEFAULT_LOW_SLOTS = 5
DEFAULT_RIG_SLOTS = 3

# =============================================================================
# Support Skill IDs
#
# The twelve skills whose bonuses are layered on top of base stats.
# =============================================================================

SKILL_CPU_MANAGEMENT = 3426
SKILL_POWER_GRID_MANAGEMENT = 3413
SKILL_CAPACITOR_MANAGEMENT = 3418
SKILL_CAPACITOR_SYSTEMS_OPERATION = 3417
SKILL_SHIELD_MANAGEMENT = 3419
SKILL_HULL_UPGRADES = 3394
SKILL_MECHANICS = 3392
SKILL_NAVIGATION = 3449
SKILL_EVASIVE_MANEUVERING = 3453
SKILL_TARGET_MANAGEMENT = 3428
SKILL_LONG_RANGE_TARGETING = 3431
SKILL_SIGNATURE_ANALYSIS = 3432

SUPPORT_SKILL_IDS: dict[str, int] = {
    "CPU Management": SKILL_CPU_MANAGEMENT,
    "Power Grid Management": SKILL_POWER_GRID_MANAGEMENT,
    "Capacitor Management": SKILL_CAPACITOR_MANAGEMENT,
    "Capacitor Systems Operation": SKILL_CAPACITOR_SYSTEMS_OPERATION,
    "Shield Management": SKILL_SHIELD_MANAGEMENT,
    "Hull Upgrades": SKILL_HULL_UPGRADES,
    "Mechanics": SKILL_MECHANICS,
    "Navigation": SKILL_NAVIGATION,
    "Evasive Maneuvering": SKILL_EVASIVE_MANEUVERING,
    "Target Management": SKILL_TARGET_MANAGEMENT,
    "Long Range Targeting": SKILL_LONG_RANGE_TARGETING,
    "Signature Analysis": SKILL_SIGNATURE_ANALYSIS,
}

MAX_SKILL_LEVEL = 5
