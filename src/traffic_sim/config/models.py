from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class SimModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    epoch: tuple[int, int, int, int, int, int] = (2025, 1, 1, 0, 0, 0)
    seed: int = 123


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1


class GraphModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    max_connect_distance: float = 50.0
    intersection_threshold: float = 10.0
    min_separation: float = 1.0
    cache_size: int = 0

    @field_validator("max_connect_distance", "intersection_threshold", "min_separation", "cache_size")
    def _nonneg(cls, v: float, info: ValidationInfo) -> float:
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v


# ----------------- SOLVERS ---------------------


class SolverBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    class_factors: dict[str, float] = Field(default_factory=dict)  # "highway" -> factor
    density_factors: dict[str, float] = Field(default_factory=dict)  # "congested" -> factor
    strategy: Literal["shortest_path", "avoid_congestion"] = "shortest_path"
    time_of_day: Literal["morning", "afternoon", "evening", "night"] | None = None
    day_type: Literal["weekday", "weekend", "holiday"] | None = None
    weather: Literal["clear", "rain", "snow", "fog"] | None = None

    def scenario(self) -> dict:
        return {
            "strategy": self.strategy,
            "time_of_day": self.time_of_day,
            "day_type": self.day_type,
            "weather": self.weather,
        }


class SolverDijkstraModel(SolverBaseModel):
    kind: Literal["dijkstra"] = "dijkstra"


class SolverAStarModel(SolverBaseModel):
    kind: Literal["astar"] = "astar"


SolverUnion = Annotated[SolverDijkstraModel | SolverAStarModel, Field(discriminator="kind")]


class AssemblerModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    base_speed: float = 60.0  # distance units per minute
    describe: bool = True

    @field_validator("base_speed")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("base_speed must be > 0")
        return v


# ----------------- MOTION ---------------------


class SpeedOscillatingModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["oscillating"] = "oscillating"


class SpeedMeanModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["mean"] = "mean"


SpeedModelUnion = Annotated[SpeedOscillatingModel | SpeedMeanModel, Field(discriminator="kind")]


class MotionModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    speed: SpeedModelUnion = Field(default_factory=SpeedOscillatingModel)
    speed_multiplier: float = 1.0
    spacing_factor: float = 5.0
    min_following_factor: float = 0.1
    dt: float = 1.0

    @field_validator("dt")
    @classmethod
    def _dt_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("dt must be > 0")
        return v

    @field_validator("speed_multiplier", "spacing_factor", "min_following_factor")
    def _nonneg(cls, v: float, info: ValidationInfo) -> float:
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v


class SpawnModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    speed_jitter: tuple[float, float] = (0.8, 1.2)
    speed_scale: float = 1.0

    @model_validator(mode="after")
    def _check_jitter(self):
        lo, hi = self.speed_jitter
        if lo < 0 or hi < lo:
            raise ValueError(f"speed_jitter must satisfy 0 <= lo <= hi, got {self.speed_jitter}")
        return self


# ------------------------------------------------------------------


class ScenarioModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "default"
    run_id: str = "local"
    sim: SimModel = SimModel()
    log: LogModel = LogModel()
    graph: GraphModel = GraphModel()
    solver: SolverUnion = Field(default_factory=SolverDijkstraModel)
    assembler: AssemblerModel = AssemblerModel()
    motion: MotionModel = MotionModel()
    spawn: SpawnModel = SpawnModel()
